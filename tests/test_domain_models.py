import pydantic
import pytest

from beanline.domain.models import (
    DEFAULT_PRIORITY,
    DEFAULT_TTR,
    MAX_PRIORITY,
    Job,
    Stats,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------


def test_protocol_defaults():
    assert DEFAULT_PRIORITY == 65536
    assert DEFAULT_TTR == 120
    assert MAX_PRIORITY == 4_294_967_295


# ---------------------------------------------------------------------------
# Job
# ---------------------------------------------------------------------------


def test_job_fields():
    job = Job(id=5, body=b"hello")
    assert job.id == 5
    assert job.body == b"hello"


def test_job_keeps_binary_body():
    body = b"\x00\r\n\xff\xfe"
    assert Job(id=1, body=body).body == body


def test_job_rejects_negative_id():
    with pytest.raises(pydantic.ValidationError):
        Job(id=-1, body=b"")


def test_job_is_frozen():
    job = Job(id=1, body=b"data")
    with pytest.raises(pydantic.ValidationError):
        job.id = 2  # type: ignore[misc]


def test_job_equality():
    assert Job(id=1, body=b"a") == Job(id=1, body=b"a")
    assert Job(id=1, body=b"a") != Job(id=2, body=b"a")


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


@pytest.fixture
def stats() -> Stats:
    return Stats({"current-jobs-ready": 3, "rusage-utime": 0.25, "name": "default"})


def test_stats_getitem(stats: Stats) -> None:
    assert stats["current-jobs-ready"] == 3
    assert stats["rusage-utime"] == 0.25
    assert stats["name"] == "default"


def test_stats_missing_key_raises(stats: Stats) -> None:
    with pytest.raises(KeyError):
        stats["missing"]


def test_stats_get_with_default(stats: Stats) -> None:
    assert stats.get("name") == "default"
    assert stats.get("missing") is None
    assert stats.get("missing", 0) == 0


def test_stats_mapping_protocol(stats: Stats) -> None:
    assert len(stats) == 3
    assert "name" in stats
    assert "missing" not in stats
    assert list(stats) == ["current-jobs-ready", "rusage-utime", "name"]
    assert dict(stats.items())["name"] == "default"
    assert list(stats.keys()) == list(stats)


def test_stats_preserves_scalar_types(stats: Stats) -> None:
    assert isinstance(stats["current-jobs-ready"], int)
    assert isinstance(stats["rusage-utime"], float)
    assert isinstance(stats["name"], str)


def test_stats_is_frozen(stats: Stats) -> None:
    with pytest.raises(pydantic.ValidationError):
        stats.root = {}  # type: ignore[misc]


def test_stats_root_is_read_only(stats: Stats) -> None:
    with pytest.raises(TypeError):
        stats.root["current-jobs-ready"] = 99  # type: ignore[index]
    assert stats["current-jobs-ready"] == 3


def test_stats_does_not_alias_the_input_dict() -> None:
    values: dict[str, int | float | str] = {"current-jobs-ready": 3}
    stats = Stats(values)
    values["current-jobs-ready"] = 99
    assert stats["current-jobs-ready"] == 3


def test_stats_dumps_to_plain_dict(stats: Stats) -> None:
    dumped = stats.model_dump()
    assert type(dumped) is dict
    assert dumped["name"] == "default"
