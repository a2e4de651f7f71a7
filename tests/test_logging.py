import pytest

from app.utils.context import request_id_context, reset_request_id, set_request_id
from app.utils.logging import DEFAULT_REQUEST_ID, get_logger

# Created before any request id is set, like the module-level loggers in app/
module_logger = get_logger()


@pytest.fixture
def captured_request_ids():
    request_ids = []
    sink_id = module_logger.add(
        lambda message: request_ids.append(message.record["extra"]["request_id"]),
        level="DEBUG",
    )
    yield request_ids
    module_logger.remove(sink_id)


class TestRequestIdBinding:
    """Log records carry the request id current when they are emitted"""

    def test_module_logger_follows_current_request(self, captured_request_ids):
        token = set_request_id("req-1234")
        try:
            module_logger.info("Processing request")
        finally:
            reset_request_id(token)

        assert captured_request_ids == ["req-1234"]

    def test_request_id_changes_between_records(self, captured_request_ids):
        first = set_request_id("req-first")
        module_logger.info("First request")
        reset_request_id(first)

        second = set_request_id("req-second")
        module_logger.info("Second request")
        reset_request_id(second)

        assert captured_request_ids == ["req-first", "req-second"]

    def test_default_outside_a_request(self, captured_request_ids):
        token = request_id_context.set(None)
        try:
            module_logger.info("Background work")
        finally:
            request_id_context.reset(token)

        assert captured_request_ids == [DEFAULT_REQUEST_ID]
