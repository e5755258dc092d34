import numpy as np
import pytest

from shapewarp.exceptions import MeshContractError
from shapewarp.geometry.delaunay import TriangleMesher
from shapewarp.record import Mesh, Triangle
from shapewarp.viz.overlays import MeshRenderer, draw_mesh


def test_draw_mesh_leaves_source_untouched():
    image = np.full((40, 40, 3), 255, dtype=np.uint8)
    mesh = Mesh((Triangle((5.0, 5.0), (30.0, 5.0), (5.0, 30.0)),))
    drawn = draw_mesh(image, mesh)
    assert image.min() == 255
    # vertices and an edge midpoint are painted black
    for x, y in [(5, 5), (30, 5), (5, 30), (17, 5)]:
        assert drawn[y, x].tolist() == [0, 0, 0]
    # interior stays white
    assert drawn[12, 12].tolist() == [255, 255, 255]


def test_renderer_draws_record_mesh(record):
    meshed = TriangleMesher().triangulate(record)
    rendered = MeshRenderer(color=(255, 0, 0)).render(meshed)
    assert rendered.image is not meshed.image
    x, y = (int(v) for v in record.points[2])
    assert rendered.image[y, x].tolist() == [255, 0, 0]


def test_renderer_without_mesh_passes_through(record):
    assert MeshRenderer().render(record) is record


def test_flat_list_must_group_in_threes():
    with pytest.raises(MeshContractError):
        Mesh.from_flat([[0, 0], [1, 0], [0, 1], [2, 2]])
