#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
arcodec 工具函数

提供文件识别、成员名称检查等通用功能。
"""

import os

from .core.schema import GLOBAL_MAGIC
from .exceptions import MalformedArchiveError

# GNU 符号索引解析后的名称 ("/" -> "", "/SYM64/" -> "/SYM64")
SYMBOL_INDEX_NAMES = ('', '/SYM64')


def is_ar_file(file_path: str) -> bool:
    """
    检查本地文件是否为 ar 归档

    只读取文件开头的魔法数。

    Examples:
        >>> is_ar_file('/usr/lib/x86_64-linux-gnu/libc.a')
        True
    """
    with open(file_path, 'rb') as f:
        return f.read(len(GLOBAL_MAGIC)) == GLOBAL_MAGIC


def is_symbol_index(name: str) -> bool:
    """是否为 GNU 符号索引成员"""
    return name in SYMBOL_INDEX_NAMES


def safe_member_name(name: str) -> str:
    """
    校验成员名称可以安全地作为本地文件名

    ar 成员名称不包含目录，这里拒绝空名称、"."、".." 以及
    包含路径分隔符的名称，防止解包时写出目标目录。

    Returns:
        原名称

    Raises:
        MalformedArchiveError: 名称不安全
    """
    separators = {'/', '\\', os.sep}
    if os.altsep:
        separators.add(os.altsep)

    if name in ('', '.', '..') or any(sep in name for sep in separators) or '\x00' in name:
        raise MalformedArchiveError(f"不安全的成员名称: {name!r}")
    return name
