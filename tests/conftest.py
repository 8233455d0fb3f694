import pytest

from mdb.synth import Waveform

from helpers import SAMPLE_PERIOD

@pytest.fixture
def wave():
    return Waveform(SAMPLE_PERIOD)
