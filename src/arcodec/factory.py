#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
归档格式注册表

按格式名称创建读取器/写入器，按文件开头的签名识别格式。
目前只注册了 "ar"。
"""

from typing import BinaryIO, Dict, Optional, Tuple, Type

from .archive.reader import ArchiveReader
from .archive.writer import ArchiveWriter
from .exceptions import UnknownArchiverError


ARCHIVER_AR = "ar"

# 格式名 (小写) -> (读取器类, 写入器类)
ARCHIVER_REGISTRY: Dict[str, Tuple[Type[ArchiveReader], Type[ArchiveWriter]]] = {
    ARCHIVER_AR: (ArchiveReader, ArchiveWriter),
}


def _lookup(archiver_name: str, stream: BinaryIO) -> Tuple[Type[ArchiveReader], Type[ArchiveWriter]]:
    if archiver_name is None:
        raise ValueError("归档格式名称不能为 None")
    if stream is None:
        raise ValueError("流不能为 None")

    key = archiver_name.lower()
    if key not in ARCHIVER_REGISTRY:
        raise UnknownArchiverError(archiver_name)
    return ARCHIVER_REGISTRY[key]


def create_archive_reader(archiver_name: str, stream: BinaryIO) -> ArchiveReader:
    """
    根据格式名称创建读取器

    名称不区分大小写。

    Raises:
        ValueError: 名称或流为 None
        UnknownArchiverError: 未注册的格式
    """
    reader_cls, _ = _lookup(archiver_name, stream)
    return reader_cls(stream)


def create_archive_writer(archiver_name: str, stream: BinaryIO, **options) -> ArchiveWriter:
    """
    根据格式名称创建写入器

    Args:
        archiver_name: 格式名称
        stream: 可写的二进制流
        **options: 传给写入器的参数 (如 long_name_mode)

    Raises:
        ValueError: 名称或流为 None
        UnknownArchiverError: 未注册的格式
    """
    _, writer_cls = _lookup(archiver_name, stream)
    return writer_cls(stream, **options)


def detect_archiver(signature: bytes) -> Optional[str]:
    """
    根据文件开头的字节识别格式

    Returns:
        格式名称，无法识别时返回 None
    """
    for name, (reader_cls, _) in ARCHIVER_REGISTRY.items():
        if reader_cls.matches(signature):
            return name
    return None
