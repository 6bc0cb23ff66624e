import logging
from collections import defaultdict

from mapreduce.framework.codec import DEFAULT_CHUNK_SIZE, KeyValueDecoder


logger = logging.getLogger(__name__)


class ShufflePhase:
    """Handles the shuffle phase - reading intermediate files and grouping by key"""

    def __init__(self, intermediate_manager, chunk_size=DEFAULT_CHUNK_SIZE):
        """
        Args:
            intermediate_manager: IntermediateFileManager used to locate and open files
            chunk_size: Characters read per decoder refill
        """
        self.intermediate_manager = intermediate_manager
        self.chunk_size = chunk_size

    def fetch_and_group(self, job_name, reduce_task, n_map):
        """Read every map task's file for this partition and group by key

        Files are read one at a time in map task order. A file that cannot
        be opened or holds a bad record aborts the whole shuffle.

        Args:
            job_name: Name of the MapReduce job
            reduce_task: Reduce partition index
            n_map: Number of map tasks that wrote intermediate files

        Returns:
            Dict of {key: [value1, value2, ...]}
        """
        grouped_data = defaultdict(list)
        total_records = 0

        for map_task in range(n_map):
            file_path = self.intermediate_manager.input_path(job_name, map_task, reduce_task)
            records = self._read_into(file_path, grouped_data)
            total_records += records
            logger.debug("Read %d records from %s", records, file_path)

        logger.info("Reduce %d of job '%s': grouped %d records into %d keys from %d files",
                    reduce_task, job_name, total_records, len(grouped_data), n_map)

        return dict(grouped_data)

    def _read_into(self, file_path, grouped_data):
        count = 0
        with self.intermediate_manager.open_intermediate(file_path) as f:
            decoder = KeyValueDecoder(f, chunk_size=self.chunk_size, source=file_path)
            for key, value in decoder:
                grouped_data[key].append(value)
                count += 1
        return count
