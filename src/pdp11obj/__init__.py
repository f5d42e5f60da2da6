#!/usr/bin/env python3
"""
pdp11obj
========

PDP-11 目标模块查看工具：解码并打印 formatted-binary 目标文件的内容。

主要功能：
- 块帧和校验和检查
- GSD（全局符号目录）解码
- TXT（文本块）解码
- RLD（重定位目录）解码，包括复杂重定位程序

核心模块：
- block_scanner: 块扫描和分派
- rad50: Radix-50 符号解码
- gsd_decoder / text_decoder / rld_decoder: 记录解码器
- renderer: 文本输出
- object_reader: 文件读取和带边界检查的游标
- types: 常量表和记录类型
- main: 命令行主程序
"""

__version__ = "1.0.0"

# 导出主要类和函数
from .block_scanner import BlockScanner, scan
from .gsd_decoder import decode_gsd, render_flags
from .object_reader import ObjectCursor, ObjectReader, LoadResult, load_object
from .rad50 import decode_symbol, decode_word
from .renderer import render_scan
from .rld_decoder import decode_rld, decode_complex_op
from .text_decoder import decode_text
from .main import main, dump_object, dump_lines

__all__ = [
    'BlockScanner',
    'scan',
    'decode_gsd',
    'decode_text',
    'decode_rld',
    'decode_complex_op',
    'decode_symbol',
    'decode_word',
    'render_flags',
    'render_scan',
    'ObjectCursor',
    'ObjectReader',
    'LoadResult',
    'load_object',
    'main',
    'dump_object',
    'dump_lines',
]
