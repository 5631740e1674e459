
from recorder.config import Settings

def test_Settings():
    s = Settings()
    assert s.DETECTION_INTERVAL_MS >= 10
    assert len(s.EMOTION_LABELS) == 7
    # override via env-like behavior (construct new instance)
    s2 = Settings(DETECTION_INTERVAL_MS=500)
    assert s2.DETECTION_INTERVAL_MS == 500

def test_Settings_normalization():
    s = Settings(SAMPLE_CROP_FRACTION=3.0, DETECTION_INTERVAL_MS=0,
                 EMOTION_LABELS=[" Happy", "SAD ", ""], LOG_LEVEL="verbose")
    assert s.SAMPLE_CROP_FRACTION == 1.0
    assert s.DETECTION_INTERVAL_MS == 10
    assert s.EMOTION_LABELS == ["happy", "sad"]
    assert s.LOG_LEVEL == "DEBUG"

def test_crop_fraction_zero_means_full_frame():
    assert Settings(SAMPLE_CROP_FRACTION=0).crop_fraction is None
    assert Settings(SAMPLE_CROP_FRACTION=0.7).crop_fraction == 0.7
