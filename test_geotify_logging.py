"""
Test structured logging
=======================

Usage:
    pytest test_geotify_logging.py -v
"""

import json
import logging

from geotify_mqtt import LogEvent, create_logger


def _entries(caplog, name):
    return [json.loads(r.getMessage()) for r in caplog.records if r.name == name]


def test_entry_shape(caplog):
    logger = create_logger("test_shape")

    with caplog.at_level(logging.INFO, logger="geotify.test_shape"):
        logger.info(
            event=LogEvent.REGISTRY_DESCRIPTOR_ADDED,
            message="Geotification added",
            metadata={'identifier': "a1b2", 'count': 1}
        )

    (entry,) = _entries(caplog, "geotify.test_shape")
    assert entry['level'] == "INFO"
    assert entry['component'] == "test_shape"
    assert entry['event'] == "registry.descriptor.added"
    assert entry['category'] == "registry"
    assert entry['metadata'] == {'identifier': "a1b2", 'count': 1}
    assert 'exception' not in entry


def test_bound_context_and_exceptions(caplog):
    logger = create_logger("test_bound").bind(service_id="napper_01")

    with caplog.at_level(logging.INFO, logger="geotify.test_bound"):
        logger.error(
            event=LogEvent.STORE_WRITE_ERROR,
            message="Failed to persist",
            exc_info=OSError("disk full")
        )
        logger.debug(event=LogEvent.MONITORING_STOP_NOOP, message="filtered out")

    (entry,) = _entries(caplog, "geotify.test_bound")
    assert entry['service_id'] == "napper_01"
    assert entry['category'] == "error"
    assert entry['exception'] == {'type': "OSError", 'message': "disk full"}
