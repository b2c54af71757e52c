#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
arcodec 归档读写

提供 ar 归档的流式读取和写入功能。
"""

from .reader import ArchiveReader, EntryStream
from .writer import ArchiveWriter, LongNameMode

__all__ = [
    "ArchiveReader",
    "EntryStream",
    "ArchiveWriter",
    "LongNameMode",
]
