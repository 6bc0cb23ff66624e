import os

from mapreduce.framework.errors import InputUnavailableError
from mapreduce.utils.naming import merge_name, reduce_name


class IntermediateFileManager:
    """Locates intermediate files for reduce tasks.

    Files are resolved with the shared naming convention relative to
    `base_dir`. Intermediate files are only ever opened for reading; they
    belong to the map tasks that wrote them.
    """

    def __init__(self, base_dir='.'):
        self.base_dir = base_dir

    def input_path(self, job_name, map_task, reduce_task):
        """Path of the file map task `map_task` wrote for `reduce_task`."""
        return os.path.join(self.base_dir, reduce_name(job_name, map_task, reduce_task))

    def output_path(self, job_name, reduce_task):
        """Default output path for a reduce partition."""
        return os.path.join(self.base_dir, merge_name(job_name, reduce_task))

    def open_intermediate(self, filepath):
        """Open an intermediate file read-only.

        Raises:
            InputUnavailableError: the file is missing or cannot be opened
        """
        try:
            return open(filepath, 'r', encoding='utf-8')
        except FileNotFoundError as e:
            raise InputUnavailableError(filepath, 'not found') from e
        except OSError as e:
            raise InputUnavailableError(filepath, e.strerror or str(e)) from e
