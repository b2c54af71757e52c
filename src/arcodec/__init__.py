#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
arcodec - Unix ar 归档流式读写库

支持 GNU/SVR4 与 BSD 两种长文件名扩展，只向前读写，
适用于不可定位的流。
"""

__version__ = "0.1.0"
__author__ = "Virace"

# 异常类
from .exceptions import (
    ArError,
    MalformedArchiveError,
    TruncatedArchiveError,
    ProtocolMisuseError,
    ConstraintViolationError,
    UnknownArchiverError,
)

# 条目与格式定义
from .core import ArEntry, EntryHeader, NameTable, GLOBAL_MAGIC, DEFAULT_MODE

# 读写
from .archive import ArchiveReader, ArchiveWriter, EntryStream, LongNameMode

# 格式注册表
from .factory import (
    ARCHIVER_AR,
    create_archive_reader,
    create_archive_writer,
    detect_archiver,
)

# 工具
from .utils import is_ar_file

__all__ = [
    # 版本
    "__version__",
    # 异常
    "ArError",
    "MalformedArchiveError",
    "TruncatedArchiveError",
    "ProtocolMisuseError",
    "ConstraintViolationError",
    "UnknownArchiverError",
    # 条目与格式
    "ArEntry",
    "EntryHeader",
    "NameTable",
    "GLOBAL_MAGIC",
    "DEFAULT_MODE",
    # 读写
    "ArchiveReader",
    "ArchiveWriter",
    "EntryStream",
    "LongNameMode",
    # 格式注册表
    "ARCHIVER_AR",
    "create_archive_reader",
    "create_archive_writer",
    "detect_archiver",
    # 工具
    "is_ar_file",
]
