"""Reduce side of a MapReduce job: group intermediate records by key,
reduce each key in sorted order, and write one output file per partition."""

from mapreduce.framework.codec import KeyValue, KeyValueDecoder, KeyValueEncoder
from mapreduce.framework.errors import (
    DecodeError,
    InputUnavailableError,
    InvalidTaskError,
    OutputWriteError,
    ReduceFunctionError,
    ReduceTaskError,
)
from mapreduce.utils.naming import merge_name, reduce_name
from mapreduce.utils.settings import configure_logging
from mapreduce.worker.executor import ReduceTask, TaskExecutor, TaskState, do_reduce

__version__ = '0.1.0'
