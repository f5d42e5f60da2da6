#!/usr/bin/env python3
"""
Object Reader Module for pdp11obj
=================================

负责目标文件的读取，以及对内存中目标映像的带边界检查的访问。

包含：
- ObjectReader: 使用内存映射读取目标文件的读取器
- LoadResult: 显式的加载成功/失败结果
- ObjectCursor: 带边界检查的游标，越界读取抛出 TruncatedError

The image is read once into an immutable ``bytes`` object; nothing in the
package writes to it afterwards.
"""

import os
import mmap
import ctypes
import struct
import logging
from typing import Optional, Union

from .errors import TruncatedError
from .rad50 import decode_symbol

# 配置日志
logger = logging.getLogger(__name__)

_WORD = struct.Struct('<H')


# =============================================================================
# 加载结果
# =============================================================================

class LoadResult:
    """
    目标文件加载结果

    ``ok`` is True only when ``image`` holds the non-empty file contents;
    otherwise ``error`` describes what went wrong.
    """

    def __init__(self, image: Optional[bytes] = None, error: Optional[str] = None):
        self.image = image
        self.error = error

    @property
    def ok(self) -> bool:
        return self.image is not None and self.error is None

    @classmethod
    def success(cls, image: bytes) -> 'LoadResult':
        return cls(image=image)

    @classmethod
    def failure(cls, error: str) -> 'LoadResult':
        return cls(error=error)

    def __bool__(self):
        return self.ok


# =============================================================================
# 内存映射目标文件读取器
# =============================================================================

class ObjectReader:
    """
    使用内存映射读取目标文件的读取器

    Usage::

        with ObjectReader(path) as reader:
            result = reader.load()
    """

    def __init__(self, file_path: str):
        """
        Args:
            file_path: 目标文件路径
        """
        self.file_path = file_path
        self.file_size = 0
        self.file_handle = None
        self.mmap_file = None
        self.error = None

    def __enter__(self):
        """上下文管理器入口"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """上下文管理器出口"""
        self.close()

    def open(self) -> bool:
        """
        打开并内存映射目标文件

        Returns:
            成功打开返回True，失败返回False
        """
        try:
            self.file_handle = open(self.file_path, 'rb')
            self.file_size = os.path.getsize(self.file_path)

            # mmap cannot map an empty file
            if self.file_size == 0:
                self.error = f"{self.file_path}: file is empty"
                logger.error(self.error)
                self.close()
                return False

            self.mmap_file = mmap.mmap(self.file_handle.fileno(), 0, access=mmap.ACCESS_READ)

            logger.debug(f"Opened object file: {self.file_path} ({self.file_size} bytes)")
            return True

        except (IOError, OSError, ValueError) as e:
            self.error = f"{self.file_path}: {e}"
            logger.error(f"Failed to open file {self.file_path}: {e}")
            self.close()
            return False

    def close(self):
        """关闭文件句柄和内存映射"""
        if self.mmap_file:
            self.mmap_file.close()
            self.mmap_file = None
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None

    def load(self) -> LoadResult:
        """
        读取整个目标文件

        Returns:
            LoadResult，成功时包含文件内容
        """
        if not self.mmap_file and not self.open():
            return LoadResult.failure(self.error or f"could not read {self.file_path}")

        try:
            image = bytes(self.mmap_file[:self.file_size])
        except (ValueError, OSError) as e:
            logger.error(f"Failed to read {self.file_path}: {e}")
            return LoadResult.failure(f"{self.file_path}: {e}")

        if len(image) != self.file_size:
            return LoadResult.failure(f"could not read {self.file_path}")

        logger.info(f"Loaded {self.file_path} ({len(image)} bytes)")
        return LoadResult.success(image)


def load_object(file_path: str) -> LoadResult:
    """Read an object file into memory"""
    with ObjectReader(file_path) as reader:
        return reader.load()


# =============================================================================
# 带边界检查的游标
# =============================================================================

def word_at(image: bytes, offset: int) -> int:
    """Little-endian 16-bit word at offset; the caller checks bounds"""
    return _WORD.unpack_from(image, offset)[0]


def read_structure(image: bytes, offset: int, structure):
    """
    从映像中复制一个ctypes结构

    Raises:
        TruncatedError: 结构超出映像末尾
    """
    size = ctypes.sizeof(structure)
    if offset < 0 or offset + size > len(image):
        raise TruncatedError(f"{structure.__name__} at {offset:06o} runs past end of data", offset)
    return structure.from_buffer_copy(image[offset:offset + size])


class ObjectCursor:
    """
    Bounds-checked reader over ``image[offset:end]``.

    Every read checks the remaining length first and raises TruncatedError
    rather than reading beyond ``end``.
    """

    def __init__(self, image: Union[bytes, bytearray], offset: int = 0, end: Optional[int] = None):
        if end is None:
            end = len(image)
        self.image = image
        self.start = offset
        self.position = offset
        self.end = min(end, len(image))

    @property
    def remaining(self) -> int:
        return max(0, self.end - self.position)

    @property
    def consumed(self) -> int:
        return self.position - self.start

    def at_end(self) -> bool:
        return self.remaining == 0

    def require(self, count: int, what: str = "record"):
        if self.remaining < count:
            raise TruncatedError(
                f"{what} at {self.position:06o} needs {count} bytes, {self.remaining} left",
                self.position)

    def read_byte(self) -> int:
        self.require(1)
        value = self.image[self.position]
        self.position += 1
        return value

    def read_word(self) -> int:
        self.require(2)
        value = word_at(self.image, self.position)
        self.position += 2
        return value

    def read_symbol(self) -> str:
        """Two Radix-50 words as a 6-character name"""
        self.require(4, "symbol")
        name = decode_symbol(self.image, self.position)
        self.position += 4
        return name

    def read_structure(self, structure):
        self.require(ctypes.sizeof(structure), structure.__name__)
        value = read_structure(self.image, self.position, structure)
        self.position += ctypes.sizeof(structure)
        return value

    def skip(self, count: int):
        self.require(count)
        self.position += count

    def __repr__(self):
        return f"ObjectCursor(position={self.position:06o}, end={self.end:06o})"
