#!/usr/bin/env python3
"""
pdp11obj 安装脚本
================

PDP-11 目标模块查看工具的安装配置。
"""

from setuptools import setup, find_packages
import os

# 读取长描述
def read_long_description():
    here = os.path.abspath(os.path.dirname(__file__))
    try:
        with open(os.path.join(here, 'README.md'), 'r', encoding='utf-8') as f:
            return f.read()
    except FileNotFoundError:
        return "pdp11obj - PDP-11 object module dumper"

# 读取依赖
def read_requirements():
    here = os.path.abspath(os.path.dirname(__file__))
    try:
        with open(os.path.join(here, 'requirements.txt'), 'r', encoding='utf-8') as f:
            requirements = []
            for line in f:
                line = line.strip()
                if line and not line.startswith('#'):
                    requirements.append(line)
            return requirements
    except FileNotFoundError:
        return []

setup(
    name="pdp11obj",
    version="1.0.0",
    author="",
    author_email="",
    description="PDP-11 目标模块查看工具 - decode GSD, TXT and RLD records",
    long_description=read_long_description(),
    long_description_content_type="text/markdown",

    # 包配置
    package_dir={"": "src"},
    packages=find_packages(where="src"),

    # 依赖
    install_requires=read_requirements(),

    # Python版本要求
    python_requires=">=3.7",

    # 分类器
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Disassemblers",
        "Topic :: System :: Archiving",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.7",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Operating System :: OS Independent",
    ],

    # 命令行入口点
    entry_points={
        "console_scripts": [
            "pdp11obj=pdp11obj.main:main",
        ],
    },

    # 项目关键词
    keywords="pdp-11, rt-11, rsx-11, object module, radix-50, linker, relocation",

    # 包含的非Python文件
    include_package_data=True,

    zip_safe=False,
)
