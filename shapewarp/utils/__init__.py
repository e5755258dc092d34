# SPDX-License-Identifier: Apache-2.0
"""IO and geometry helpers shared by the shapewarp stages."""
