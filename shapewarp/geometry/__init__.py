# SPDX-License-Identifier: Apache-2.0
"""Shape normalization, Procrustes alignment and Delaunay meshing."""
