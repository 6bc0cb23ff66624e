import pytest

from mapreduce.framework.codec import KeyValue, KeyValueEncoder
from mapreduce.utils.naming import reduce_name


@pytest.fixture
def write_intermediate(tmp_path):
    """Write records for (job, map task, reduce task) the way a map task would."""

    def write(job_name, map_task, reduce_task, records):
        path = tmp_path / reduce_name(job_name, map_task, reduce_task)
        with open(path, 'w', encoding='utf-8') as f:
            encoder = KeyValueEncoder(f)
            for key, value in records:
                encoder.encode(KeyValue(key, value))
        return path

    return write


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ('MAPREDUCE_INTERMEDIATE_DIR', 'MAPREDUCE_DECODE_CHUNK_SIZE',
                 'MAPREDUCE_LOG_LEVEL'):
        monkeypatch.delenv(name, raising=False)
