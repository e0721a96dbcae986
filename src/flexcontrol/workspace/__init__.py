# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers

"""flex_extract run directories and the commands run in them."""

from .pathnames import FePathnames, FlexExtractDir, find_control_file
from .commands import (
    ExtractionRunner,
    ProcessResult,
    add_exec_path,
    adapt_env,
    feparams,
    find_ppid,
    prepare,
    prepare_command,
    retrieve_workspace,
    submit,
    submit_command,
)

__all__ = [
    'FePathnames',
    'FlexExtractDir',
    'find_control_file',
    'ExtractionRunner',
    'ProcessResult',
    'add_exec_path',
    'adapt_env',
    'feparams',
    'find_ppid',
    'prepare',
    'prepare_command',
    'retrieve_workspace',
    'submit',
    'submit_command',
]
