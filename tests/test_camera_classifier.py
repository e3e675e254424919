# tests/test_camera_classifier.py
"""Unit tests for the camera status classifier."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import itertools
import pytest
from app.schemas.counting import CountingFrame
from app.schemas.reliability import ReliabilityStatusResponse
from app.services.camera_classifier import (
    CameraFilter, CameraSignals, CameraStatus, build_camera_signals, classify,
    classify_cameras, count_by_status, filter_cameras,
)

UMBRELLA_VALUES = (True, False, None)


def signals(ptz=False, stream=True, reliable=None, umbrellas=None, camera_id=1):
    return CameraSignals(camera_id=camera_id, ptz_offset=ptz, stream_online=stream,
                         umbrella_reliable=reliable, umbrella_count=umbrellas)


class TestClassify:
    @pytest.mark.parametrize("ptz,reliable", itertools.product((True, False), UMBRELLA_VALUES))
    def test_offline_dominates(self, ptz, reliable):
        assert classify(signals(ptz=ptz, stream=False, reliable=reliable)) == CameraStatus.OFFLINE

    @pytest.mark.parametrize("reliable", UMBRELLA_VALUES)
    def test_ptz_dominates_rain(self, reliable):
        assert classify(signals(ptz=True, reliable=reliable, umbrellas=7)) == CameraStatus.PTZ_OFFSET

    def test_explicit_unreliable_is_rain_affected(self):
        assert classify(signals(reliable=False, umbrellas=4)) == CameraStatus.RAIN_AFFECTED

    @pytest.mark.parametrize("reliable", (True, None))
    def test_reliable_or_unknown_is_normal(self, reliable):
        assert classify(signals(reliable=reliable)) == CameraStatus.NORMAL

    def test_same_input_same_output(self):
        s = signals(reliable=False)
        assert classify(s) == classify(s)


class TestBuildCameraSignals:
    def test_no_frame_yet(self):
        assert build_camera_signals(None, None) == []

    def test_array_length_defines_camera_count(self):
        frame = CountingFrame.model_validate({"CamPtz": [False] * 4, "CamStream": [True] * 4})
        result = build_camera_signals(frame, None)
        assert [s.camera_id for s in result] == [1, 2, 3, 4]

    def test_shorter_array_reads_as_offline_and_no_ptz(self):
        frame = CountingFrame.model_validate({"CamPtz": [True], "CamStream": [True, True, True]})
        result = build_camera_signals(frame, None)
        assert len(result) == 3
        assert result[0].ptz_offset is True
        assert result[2].ptz_offset is False

        frame = CountingFrame.model_validate({"CamPtz": [False, False], "CamStream": [True]})
        assert build_camera_signals(frame, None)[1].stream_online is False

    def test_reliability_keyed_by_camera_name(self):
        frame = CountingFrame.model_validate({"CamPtz": [False, False], "CamStream": [True, True]})
        reliability = ReliabilityStatusResponse.model_validate({
            "reliability": {"cameras": {"camera_2": {"reliable": False, "umbrella_count": 6}}},
        })
        first, second = build_camera_signals(frame, reliability)
        assert first.umbrella_reliable is None and first.umbrella_count is None
        assert second.umbrella_reliable is False and second.umbrella_count == 6

    def test_reliability_without_camera_map(self):
        frame = CountingFrame.model_validate({"CamPtz": [False], "CamStream": [True]})
        reliability = ReliabilityStatusResponse.model_validate({"status": "success"})
        assert classify_cameras(frame, reliability)[0].status == CameraStatus.NORMAL


class TestViews:
    def make_states(self):
        frame = CountingFrame.model_validate({
            "CamPtz":    [False, True,  False, False],
            "CamStream": [True,  True,  False, True],
        })
        reliability = ReliabilityStatusResponse.model_validate({
            "reliability": {"cameras": {"camera_4": {"reliable": False, "umbrella_count": 3}}},
        })
        return classify_cameras(frame, reliability)

    def test_statuses_in_camera_order(self):
        assert [s.status for s in self.make_states()] == [
            CameraStatus.NORMAL, CameraStatus.PTZ_OFFSET, CameraStatus.OFFLINE, CameraStatus.RAIN_AFFECTED,
        ]

    def test_count_by_status_includes_zero_buckets(self):
        counts = count_by_status(self.make_states()[:1])
        assert counts[CameraStatus.NORMAL] == 1
        assert counts[CameraStatus.OFFLINE] == 0

    def test_filters_use_raw_signals(self):
        states = self.make_states()
        assert [s.camera_id for s in filter_cameras(states, CameraFilter.OFFLINE)] == [3]
        assert [s.camera_id for s in filter_cameras(states, CameraFilter.ONLINE)] == [1, 2, 4]
        assert [s.camera_id for s in filter_cameras(states, CameraFilter.PTZ_OFFSET)] == [2]
        assert [s.camera_id for s in filter_cameras(states, CameraFilter.PTZ_NORMAL)] == [1, 3, 4]
        assert len(filter_cameras(states, CameraFilter.ALL)) == 4
