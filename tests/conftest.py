import sys
import os.path as osp
import pytest

sys.path = [osp.normpath(osp.dirname(__file__) + "/../lib"),
            osp.normpath(osp.dirname(__file__))] + sys.path

from fifostreams import has_fifo_support, UnixFIFOStream, FallbackFIFOStream  # noqa: E402

# variants that can be tested on this platform
STREAM_CLASSES = ([UnixFIFOStream] if has_fifo_support() else []) + [FallbackFIFOStream]

@pytest.fixture(params=STREAM_CLASSES, ids=lambda cls: cls.__name__)
def stream_class(request):
    """each FIFOStream implementation supported on this platform"""
    return request.param
