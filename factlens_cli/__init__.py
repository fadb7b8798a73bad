# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors
"""
FactLens CLI Module

Commands:
- check: Check text, a URL or an image and print the JSON response
- sources: List the trusted source directory

Usage:
    python -m factlens_cli check --type url --content https://example.com/article
    echo "The moon is made of cheese" | python -m factlens_cli check
    python -m factlens_cli sources
"""

from factlens_cli.check_cmd import main

__all__ = ["main"]
