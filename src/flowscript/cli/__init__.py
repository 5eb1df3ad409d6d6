"""
FlowScript Command-Line Interface
=================================

This package provides command-line tools for FlowScript binaries:

- **bfdisasm**: FlowScript disassembler

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["bfdisasm"]
