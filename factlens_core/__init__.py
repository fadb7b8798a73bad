# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

"""
FactLens Core Engine
====================

Evidence-synthesis pipeline for content reliability checks.
"""

__version__ = "0.3.0"
