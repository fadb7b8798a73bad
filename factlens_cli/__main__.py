# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

from factlens_cli import main

main()
