import errno
import os

import pytest

from helpers import join_reduce, read_output, sum_reduce
from mapreduce.framework import reducer as reducer_module
from mapreduce.framework.codec import KeyValueEncoder
from mapreduce.framework.errors import OutputWriteError, ReduceFunctionError, ReduceTaskError
from mapreduce.framework.reducer import ReducePhase, word_count_reduce


def test_writes_one_record_per_key_in_sorted_order(tmp_path):
    out_file = tmp_path / 'out'
    grouped = {'dog': ['1'], 'cat': ['1', '1'], 'ant': ['1']}

    count = ReducePhase(sum_reduce).execute(grouped, out_file)

    assert count == 3
    assert read_output(out_file) == [('ant', '1'), ('cat', '2'), ('dog', '1')]


def test_sort_is_by_code_point():
    keys = ReducePhase(sum_reduce).sorted_keys(
        {'b': [], 'a': [], 'Z': [], 'é': [], '\U0001F600': [], 'aa': [], '10': [], '9': []})

    assert keys == ['10', '9', 'Z', 'a', 'aa', 'b', 'é', '\U0001F600']


def test_reduce_called_once_per_key_with_all_values(tmp_path):
    calls = []

    def recording_reduce(key, values):
        calls.append((key, list(values)))
        return str(len(values))

    grouped = {'b': ['x', 'y'], 'a': ['z']}
    ReducePhase(recording_reduce).execute(grouped, tmp_path / 'out')

    assert calls == [('a', ['z']), ('b', ['x', 'y'])]


def test_empty_grouping_writes_empty_file(tmp_path):
    out_file = tmp_path / 'out'

    assert ReducePhase(sum_reduce).execute({}, out_file) == 0
    assert out_file.read_text() == ''


def test_no_partial_file_left_on_success(tmp_path):
    out_file = tmp_path / 'out'
    ReducePhase(join_reduce).execute({'k': ['b', 'a']}, out_file)

    assert os.listdir(tmp_path) == ['out']
    assert read_output(out_file) == [('k', 'a,b')]


def test_overwrites_previous_output(tmp_path):
    out_file = tmp_path / 'out'
    out_file.write_text('stale content\n')

    ReducePhase(sum_reduce).execute({'a': ['2']}, out_file)

    assert out_file.read_text() == '{"Key":"a","Value":"2"}\n'


def test_failing_reduce_function_aborts(tmp_path):
    out_file = tmp_path / 'out'
    out_file.write_text('from an earlier attempt\n')

    def fragile_reduce(key, values):
        if key == 'b':
            raise ValueError('bad value')
        return 'ok'

    with pytest.raises(ReduceFunctionError) as exc_info:
        ReducePhase(fragile_reduce).execute({'a': ['1'], 'b': ['1'], 'c': ['1']}, out_file)

    assert exc_info.value.key == 'b'
    assert isinstance(exc_info.value.__cause__, ValueError)
    assert not out_file.exists()
    # Nothing is written for the failing key or anything after it
    partial = tmp_path / ('out' + reducer_module.PARTIAL_SUFFIX)
    assert read_output(partial) == [('a', 'ok')]


def test_non_string_result_is_rejected(tmp_path):
    with pytest.raises(ReduceFunctionError, match='str'):
        ReducePhase(lambda key, values: len(values)).execute({'a': ['1']}, tmp_path / 'out')

    assert not (tmp_path / 'out').exists()


def test_reduce_function_oserror_is_not_an_output_error(tmp_path):
    def reduce_with_io_error(key, values):
        raise OSError('lookup failed')

    with pytest.raises(ReduceFunctionError):
        ReducePhase(reduce_with_io_error).execute({'a': ['1']}, tmp_path / 'out')


def test_unwritable_destination(tmp_path):
    out_file = tmp_path / 'missing_dir' / 'out'

    with pytest.raises(OutputWriteError) as exc_info:
        ReducePhase(sum_reduce).execute({'a': ['1']}, out_file)

    assert exc_info.value.path == str(out_file)


def test_write_failure_midstream(tmp_path, monkeypatch):
    class FailingEncoder(KeyValueEncoder):
        def __init__(self, stream):
            super().__init__(stream)
            self.written = 0

        def encode(self, kv):
            if self.written == 2:
                raise OSError(errno.ENOSPC, 'No space left on device')
            super().encode(kv)
            self.written += 1

    monkeypatch.setattr(reducer_module, 'KeyValueEncoder', FailingEncoder)
    out_file = tmp_path / 'out'

    with pytest.raises(OutputWriteError, match='No space left'):
        ReducePhase(sum_reduce).execute({k: ['1'] for k in 'abcd'}, out_file)

    assert not out_file.exists()
    assert (tmp_path / ('out' + reducer_module.PARTIAL_SUFFIX)).exists()


def test_word_count_reduce():
    assert word_count_reduce('the', ['1', '1', '1']) == '3'
    assert word_count_reduce('the', ['2', '5']) == '7'


def test_unencodable_result_is_a_reduce_error(tmp_path):
    out_file = tmp_path / 'out'

    with pytest.raises(ReduceTaskError) as exc_info:
        ReducePhase(lambda key, values: '\udc80').execute({'a': ['1']}, out_file)

    assert isinstance(exc_info.value, ReduceFunctionError)
    assert exc_info.value.key == 'a'
    assert not out_file.exists()


def test_unencodable_key_is_an_output_error(tmp_path):
    out_file = tmp_path / 'out'

    with pytest.raises(OutputWriteError):
        ReducePhase(sum_reduce).execute({'\ud800': ['1']}, out_file)

    assert not out_file.exists()
