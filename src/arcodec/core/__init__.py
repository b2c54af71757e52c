#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
arcodec 核心模块

提供二进制 I/O 封装、ar 格式定义、条目描述和 GNU 扩展名表。
"""

from .binary_io import BinaryReader, BinaryWriter
from .schema import (
    EntryHeader,
    GLOBAL_MAGIC,
    ENTRY_TRAILER,
    DEFAULT_MODE,
    ENCODING,
)
from .entry import ArEntry
from .string_table import NameTable

__all__ = [
    "BinaryReader",
    "BinaryWriter",
    "EntryHeader",
    "GLOBAL_MAGIC",
    "ENTRY_TRAILER",
    "DEFAULT_MODE",
    "ENCODING",
    "ArEntry",
    "NameTable",
]
