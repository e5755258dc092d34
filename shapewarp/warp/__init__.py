# SPDX-License-Identifier: Apache-2.0
"""Image resampling driven by an aligned mesh."""
