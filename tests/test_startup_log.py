import logging

from cra_client.startup_log import LOGGER_NAME, FileStartupLog


def test_entries_are_appended_across_instances(tmp_path):
    path = tmp_path / "logs" / "startup.log"

    first = FileStartupLog(path)
    first.record("state=PROBING")
    first.close()
    second = FileStartupLog(path)
    second.record("state=LAUNCHED")
    second.close()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert lines[0].endswith(" state=PROBING")
    assert lines[1].endswith(" state=LAUNCHED")


def test_unwritable_location_does_not_raise(tmp_path):
    blocker = tmp_path / "logs"
    blocker.write_text("not a directory", encoding="utf-8")

    log = FileStartupLog(blocker / "startup.log")
    log.record("state=PROBING")
    log.close()

    assert not log.available


def test_instances_share_one_logger_and_replace_its_handler(tmp_path):
    startup_logger = logging.getLogger(LOGGER_NAME)
    first = FileStartupLog(tmp_path / "first.log")
    second = FileStartupLog(tmp_path / "second.log")
    try:
        assert len(startup_logger.handlers) == 1
        assert not first.available
        assert second.available

        first.record("from first")
        second.record("from second")
    finally:
        first.close()
        second.close()

    assert startup_logger.handlers == []
    assert "from first" not in (tmp_path / "second.log").read_text(encoding="utf-8")
    assert "from second" in (tmp_path / "second.log").read_text(encoding="utf-8")
