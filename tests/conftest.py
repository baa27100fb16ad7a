import io
import logging
import os
import tempfile

# Keep test runs away from a developer's .env config and error.log
os.environ["CUTPLAN_CONFIG"] = ""
os.environ.setdefault("CUTPLAN_LOG_FILE", os.path.join(tempfile.gettempdir(), "cutplan-tests.log"))

import ezdxf
import pytest

from cutplan import create_app

HEADER = "0\nSECTION\n2\nENTITIES\n"
FOOTER = "0\nENDSEC\n0\nEOF\n"


# Log all test failures and errors
@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    rep = outcome.get_result()
    if rep.when == 'call' and rep.failed:
        logging.getLogger().error(f"Test {item.nodeid} FAILED\n{rep.longrepr}")


@pytest.fixture(scope='session')
def app():
    app = create_app({'TESTING': True})
    return app


@pytest.fixture(scope='function')
def client(app):
    return app.test_client()


@pytest.fixture
def make_dxf():
    """Wrap entity records (a list of group code/value lines) in an ENTITIES section."""
    def _make(*records):
        body = "".join("\n".join(str(v) for v in record) + "\n" for record in records)
        return HEADER + body + FOOTER
    return _make


@pytest.fixture
def line_and_circle_dxf(make_dxf):
    return make_dxf(
        ["0", "LINE", "8", "0", "10", "0", "20", "0", "11", "100", "21", "100"],
        ["0", "CIRCLE", "8", "0", "10", "50", "20", "50", "40", "25"],
    )


@pytest.fixture
def rectangle_dxf(make_dxf):
    return make_dxf(
        ["0", "LWPOLYLINE", "8", "0", "90", "4", "70", "1",
         "10", "0", "20", "0", "10", "100", "20", "0", "10", "100", "20", "50", "10", "0", "20", "50"],
    )


@pytest.fixture
def plate_dxf():
    """200 x 100 plate with two 10 mm holes, written by ezdxf as a full R2010 drawing."""
    doc = ezdxf.new("R2010")
    msp = doc.modelspace()
    msp.add_lwpolyline([(0, 0), (200, 0), (200, 100), (0, 100)], close=True)
    msp.add_circle((50, 50), 10)
    msp.add_circle((150, 50), 10)
    stream = io.StringIO()
    doc.write(stream)
    return stream.getvalue()
