import logging
import time
from enum import Enum

from mapreduce.framework.errors import InvalidTaskError
from mapreduce.framework.reducer import ReducePhase, word_count_reduce
from mapreduce.framework.shuffler import ShufflePhase
from mapreduce.utils import settings
from mapreduce.worker.intermediate import IntermediateFileManager


logger = logging.getLogger(__name__)


class TaskState(Enum):
    """Lifecycle of a single reduce task attempt."""
    PENDING = "pending"        # Created, not yet run
    COLLECTING = "collecting"  # Reading and grouping intermediate files
    EMITTING = "emitting"      # Reducing keys and writing output
    DONE = "done"              # Output file finalized
    FAILED = "failed"          # Aborted, no finalized output


class ReduceTask:
    """One attempt at a reduce task.

    Collects every intermediate file for the partition, then reduces the
    keys in sorted order into the output file. The attempt either finishes
    in DONE with a complete output file or ends in FAILED with the error
    re-raised to the caller. Re-running the same inputs is safe and
    produces the same output, so retrying means building a new ReduceTask.
    """

    def __init__(self, job_name, reduce_task, out_file, n_map, reduce_function,
                 intermediate_manager=None, chunk_size=None):
        _validate(job_name, reduce_task, out_file, n_map, reduce_function)

        self.job_name = job_name
        self.reduce_task = reduce_task
        self.out_file = out_file
        self.n_map = n_map

        self.intermediate_manager = intermediate_manager or IntermediateFileManager(
            settings.intermediate_dir())
        self.shuffle_phase = ShufflePhase(self.intermediate_manager,
                                          chunk_size=settings.decode_chunk_size(chunk_size))
        self.reduce_phase = ReducePhase(reduce_function)

        self.state = TaskState.PENDING
        self.error = None
        self.num_keys = 0
        self.records_written = 0
        self.duration = None

    @property
    def task_id(self):
        return f"reduce_{self.job_name}_{self.reduce_task}"

    def run(self):
        """Run the attempt.

        Returns:
            Path of the finalized output file

        Raises:
            ReduceTaskError: any input, decode, reduce or output failure
        """
        if self.state is not TaskState.PENDING:
            raise RuntimeError(f"Task {self.task_id} already ran (state: {self.state.value})")

        start_time = time.time()
        logger.info("Task %s STARTED (%d map outputs -> %s)",
                    self.task_id, self.n_map, self.out_file)

        try:
            self.state = TaskState.COLLECTING
            self.reduce_phase.discard_output(self.out_file)
            grouped_data = self.shuffle_phase.fetch_and_group(
                self.job_name, self.reduce_task, self.n_map)
            self.num_keys = len(grouped_data)

            self.state = TaskState.EMITTING
            self.records_written = self.reduce_phase.execute(grouped_data, self.out_file)
        except Exception as e:
            self.duration = time.time() - start_time
            logger.error("Task %s FAILED while %s: %s",
                         self.task_id, self.state.value, e)
            self.state = TaskState.FAILED
            self.error = e
            raise

        self.state = TaskState.DONE
        self.duration = time.time() - start_time
        logger.info("Task %s COMPLETED in %.2fs (%d keys)",
                    self.task_id, self.duration, self.num_keys)
        return self.out_file


def _validate(job_name, reduce_task, out_file, n_map, reduce_function):
    if not isinstance(job_name, str) or not job_name:
        raise InvalidTaskError(f"job_name must be a non-empty string, got {job_name!r}")
    if not isinstance(reduce_task, int) or isinstance(reduce_task, bool) or reduce_task < 0:
        raise InvalidTaskError(f"reduce_task must be an integer >= 0, got {reduce_task!r}")
    if not isinstance(n_map, int) or isinstance(n_map, bool) or n_map <= 0:
        raise InvalidTaskError(f"n_map must be an integer > 0, got {n_map!r}")
    if not out_file:
        raise InvalidTaskError("out_file must be given")
    if not callable(reduce_function):
        raise InvalidTaskError(f"reduce_function must be callable, got {reduce_function!r}")


class TaskExecutor:
    """Executes reduce tasks on a worker.

    Based on Google MapReduce paper:
    - Reduce tasks read one intermediate file per map task for their partition
    - Values are grouped by key, keys are sorted, and the reduce function is
      applied once per key
    """

    def __init__(self, worker_id, reduce_function=None,
                 intermediate_dir=None, chunk_size=None):
        """Initialize executor.

        Args:
            worker_id: ID of the worker running this executor
            reduce_function: User-defined reduce function (default: word_count_reduce)
            intermediate_dir: Directory for intermediate files
                              (default: MAPREDUCE_INTERMEDIATE_DIR or '.')
            chunk_size: Decoder read size (default: MAPREDUCE_DECODE_CHUNK_SIZE)
        """
        self.worker_id = worker_id
        self.reduce_function = reduce_function or word_count_reduce
        self.chunk_size = settings.decode_chunk_size(chunk_size)
        self.intermediate_manager = IntermediateFileManager(
            settings.intermediate_dir(intermediate_dir))

    def execute_reduce(self, job_name, reduce_task, n_map, out_file=None):
        """Execute a reduce task.

        1. Read the intermediate file from every map task for this partition
        2. Group values by key (shuffle)
        3. Sort keys
        4. Apply reduce function to each (key, [values]) group
        5. Atomically write the output file

        Args:
            job_name: Name of the MapReduce job
            reduce_task: Which partition this reduce handles
            n_map: Number of map tasks
            out_file: Output path (default: merge name in the intermediate dir)

        Returns:
            dict: summary of the completed task
        """
        if out_file is None:
            out_file = self.intermediate_manager.output_path(job_name, reduce_task)

        task = ReduceTask(job_name, reduce_task, out_file, n_map, self.reduce_function,
                          intermediate_manager=self.intermediate_manager,
                          chunk_size=self.chunk_size)
        logger.debug("Worker %s running %s", self.worker_id, task.task_id)
        task.run()

        return {
            'task_id': task.task_id,
            'worker_id': self.worker_id,
            'partition_id': reduce_task,
            'output': task.out_file,
            'keys': task.num_keys,
            'records': task.records_written,
            'duration': task.duration,
        }


def do_reduce(job_name, reduce_task, out_file, n_map, reduce_function,
              intermediate_dir=None):
    """Run one reduce task and return the output path.

    Raises ReduceTaskError (or InvalidTaskError for bad arguments) on failure.
    """
    manager = IntermediateFileManager(settings.intermediate_dir(intermediate_dir))
    task = ReduceTask(job_name, reduce_task, out_file, n_map, reduce_function,
                      intermediate_manager=manager)
    return task.run()
