# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers

"""Settings models for flexcontrol."""

from .settings import FlexExtractSettings

__all__ = ['FlexExtractSettings']
