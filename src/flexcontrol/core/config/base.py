# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers

"""
Base configuration shared by the settings models.
"""

from pydantic import ConfigDict

# Standard ConfigDict for all settings models
FROZEN_CONFIG = ConfigDict(extra='allow', populate_by_name=True, frozen=True)
