#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
arcodec 异常定义

所有异常均继承自 ArError，便于统一捕获。
"""

from typing import Optional


class ArError(Exception):
    """arcodec 基础异常"""
    pass


class MalformedArchiveError(ArError):
    """
    归档格式无效异常
    
    魔法数、条目尾标、数值字段或长文件名引用不符合 ar 格式时抛出。
    抛出后底层流的位置不可信，读取器不会尝试恢复。
    """
    def __init__(self, message: str, expected: str = None, actual: str = None):
        self.expected = expected
        self.actual = actual
        if expected is not None and actual is not None:
            message = f"{message}: 期望 {expected}, 实际 {actual}"
        super().__init__(message)


class TruncatedArchiveError(MalformedArchiveError):
    """
    归档被截断异常
    
    读取头部、长文件名、扩展名表或跳过条目剩余数据时遇到意外的流结束。
    """
    def __init__(self, message: str, expected: int = None, actual: int = None):
        super().__init__(
            message,
            expected=None if expected is None else f"{expected} 字节",
            actual=None if actual is None else f"{actual} 字节",
        )


class ProtocolMisuseError(ArError):
    """
    调用顺序错误异常
    
    表示调用方的 bug: 没有打开的条目时关闭条目、条目长度与声明不符、
    重复 finish、在 finish/close 之后继续操作等。
    """
    pass


class ConstraintViolationError(ArError):
    """
    字段超出定长编码异常
    
    在写入条目头时，某个元数据字段无法放入固定宽度的字段中。
    """
    def __init__(self, field: str, value: object, width: Optional[int] = None,
                 message: str = None):
        self.field = field
        self.value = value
        self.width = width
        if message is None:
            message = f"字段 {field} 过长: {value!r} 超出 {width} 字节"
        super().__init__(message)


class UnknownArchiverError(ArError):
    """
    未知归档格式异常
    
    当工厂函数遇到未注册的格式名称时抛出。
    """
    def __init__(self, archiver_name: str):
        self.archiver_name = archiver_name
        super().__init__(f"未知的归档格式: {archiver_name}")
