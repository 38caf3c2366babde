# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Donor Registry API - donor records, bulk CSV import and statistics.
"""

__version__ = "1.0.0"
