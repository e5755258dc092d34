from __future__ import annotations

import io

import numpy as np
import pytest
from structlog.testing import capture_logs

from conftest import BOUNDING_RECT, LANDMARKS, rotate_about
from shapewarp.exceptions import (
    EmptyTrainingSetError,
    ModelFormatError,
    PointCountMismatchError,
)
from shapewarp.geometry.normalize import full_point_set, normalize_points
from shapewarp.geometry.procrustes import MeanShape, ShapeAligner, train_mean_shape
from shapewarp.record import Record, Rect
from shapewarp.utils.io import save_npz


class TestTraining:
    def test_mean_of_equivalent_shapes_is_the_shape(self, population):
        mean = train_mean_shape(population)
        expected, _, _ = normalize_points(full_point_set(LANDMARKS, BOUNDING_RECT))
        assert mean.point_count == len(LANDMARKS) + 4
        assert np.allclose(mean.points, expected)

    def test_records_without_points_or_rects_are_skipped(self, population, image):
        extra = [
            Record(image=image, points=[], rects=[BOUNDING_RECT], name="no_points"),
            Record(image=image, points=LANDMARKS, rects=[], name="no_rects"),
        ]
        mean = train_mean_shape(extra + population)
        assert np.allclose(mean.points, train_mean_shape(population).points)

    def test_no_usable_record_is_fatal(self, image):
        records = [Record(image=image, points=[], rects=[]), Record(image=image, points=LANDMARKS)]
        with pytest.raises(EmptyTrainingSetError):
            train_mean_shape(records)
        with pytest.raises(EmptyTrainingSetError):
            train_mean_shape([])

    def test_point_count_mismatch_is_fatal(self, record, image):
        shorter = Record(image=image, points=LANDMARKS[:3], rects=[BOUNDING_RECT], name="short")
        with pytest.raises(PointCountMismatchError) as info:
            train_mean_shape([record, shorter])
        assert info.value.expected == 9
        assert info.value.found == 7

    def test_mean_shape_is_read_only(self, population):
        mean = train_mean_shape(population)
        with pytest.raises(ValueError):
            mean.points[0, 0] = 1.0

    def test_last_rect_is_the_bounding_region(self, record, image):
        decoy = Record(
            image=image, points=LANDMARKS, rects=[Rect(0, 0, 5, 5), BOUNDING_RECT]
        )
        assert np.allclose(train_mean_shape([decoy]).points, train_mean_shape([record]).points)


class TestAlignment:
    def test_self_alignment_is_identity(self, record):
        aligner = ShapeAligner.train([record])
        aligned = aligner.align(record)
        assert aligned.alignment is not None
        assert np.allclose(aligned.alignment.rotation, np.eye(2), atol=1e-9)
        assert aligned.alignment.mean_x == pytest.approx(50.0)
        assert aligned.alignment.mean_y == pytest.approx(50.0)
        assert np.allclose(aligned.aligned_points, aligner.mean_shape.points)

    def test_rotated_record_is_rotated_back(self, record):
        aligner = ShapeAligner.train([record])
        rotated = Record(
            image=record.image,
            points=rotate_about(LANDMARKS, 30.0),
            rects=[BOUNDING_RECT],
        )
        # the bounding rect anchors do not rotate, so only compare the direction
        params = aligner.align(rotated).alignment
        assert params is not None
        assert np.linalg.det(params.rotation) == pytest.approx(1.0)
        angle = np.degrees(np.arctan2(params.rotation[1, 0], params.rotation[0, 0]))
        assert 0.0 < angle < 30.0

    def test_fully_rotated_shape_recovers_rotation(self, record):
        aligner = ShapeAligner.train([record])
        shape = full_point_set(LANDMARKS, BOUNDING_RECT)
        normalized, _, _ = normalize_points(rotate_about(shape, 25.0))
        rotation = aligner.rotation_for(normalized)
        theta = np.deg2rad(25.0)
        expected = np.array([[np.cos(theta), -np.sin(theta)], [np.sin(theta), np.cos(theta)]])
        assert np.allclose(rotation, expected, atol=1e-9)
        assert np.allclose(normalized @ rotation, aligner.mean_shape.points, atol=1e-9)

    def test_input_record_is_not_modified(self, record):
        aligner = ShapeAligner.train([record])
        aligner.align(record)
        assert record.alignment is None
        assert record.aligned_points is None

    def test_warp_disabled_keeps_alignment_only(self, record):
        aligned = ShapeAligner.train([record], warp=False).align(record)
        assert aligned.alignment is not None
        assert aligned.aligned_points is None

    def test_missing_rect_passes_record_through(self, record, image):
        aligner = ShapeAligner.train([record])
        bare = Record(image=image, points=LANDMARKS, name="bare")
        with capture_logs() as logs:
            result = aligner.align(bare)
        assert result is bare
        assert logs[0]["event"] == "procrustes_skipped"
        assert logs[0]["log_level"] == "warning"

    def test_point_count_mismatch_passes_record_through(self, record, image):
        aligner = ShapeAligner.train([record])
        other = Record(image=image, points=LANDMARKS[:2], rects=[BOUNDING_RECT])
        with capture_logs() as logs:
            assert aligner.align(other) is other
        assert logs[0]["expected"] == 9

    def test_landmarks_stay_in_image_space(self, record):
        aligned = ShapeAligner.train([record]).align(record)
        assert np.array_equal(aligned.points, record.points)
        assert aligned.aligned_points.shape == (len(record.points) + 4, 2)

    def test_mirrored_shape_keeps_improper_rotation(self, record, debug_logging):
        shape = full_point_set(record.points, record.bounding_rect)
        normalized, _, _ = normalize_points(shape)
        flip = np.diag([-1.0, 1.0])
        aligner = ShapeAligner(MeanShape(normalized @ flip))

        with capture_logs() as logs:
            aligned = aligner.align(record)

        rotation = aligned.alignment.rotation
        assert np.linalg.det(rotation) == pytest.approx(-1.0)
        assert np.allclose(rotation, flip, atol=1e-9)
        assert np.allclose(aligned.aligned_points, aligner.mean_shape.points, atol=1e-9)
        events = [e for e in logs if e["event"] == "improper_rotation"]
        assert events and events[0]["log_level"] == "debug"


class TestPersistence:
    def test_store_and_load(self, population, tmp_path):
        aligner = ShapeAligner.train(population)
        path = tmp_path / "mean_shape.npz"
        aligner.store(path)
        loaded = ShapeAligner.load(path)
        assert np.array_equal(loaded.mean_shape.points, aligner.mean_shape.points)

    def test_stream_layout_is_row_major_with_header(self, population):
        mean = train_mean_shape(population)
        buffer = io.BytesIO()
        mean.store(buffer)
        buffer.seek(0)
        with np.load(buffer) as data:
            assert int(data["format_version"]) == MeanShape.FORMAT_VERSION
            assert (int(data["rows"]), int(data["cols"])) == (9, 2)
            assert np.array_equal(data["values"][:2], mean.points[0])

    def test_unknown_version_is_rejected(self, tmp_path):
        path = tmp_path / "future.npz"
        save_npz(path, format_version=np.array(99), rows=np.array(1), cols=np.array(2),
                 values=np.zeros(2))
        with pytest.raises(ModelFormatError):
            MeanShape.load(path)

    def test_header_must_match_values(self, tmp_path):
        path = tmp_path / "short.npz"
        save_npz(path, format_version=np.array(1), rows=np.array(9), cols=np.array(2),
                 values=np.zeros(4))
        with pytest.raises(ModelFormatError):
            MeanShape.load(path)

    def test_garbage_is_rejected(self, tmp_path):
        path = tmp_path / "garbage.npz"
        path.write_bytes(b"not a mean shape")
        with pytest.raises(ModelFormatError):
            MeanShape.load(path)
