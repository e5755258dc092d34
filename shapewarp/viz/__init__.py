# SPDX-License-Identifier: Apache-2.0
"""Diagnostic drawing helpers."""
