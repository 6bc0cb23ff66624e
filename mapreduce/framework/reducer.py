import logging
import os

from mapreduce.framework.codec import KeyValue, KeyValueEncoder
from mapreduce.framework.errors import OutputWriteError, ReduceFunctionError


logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = '.partial'


class ReducePhase:
    """Handles the reduce phase of MapReduce"""

    def __init__(self, reduce_function):
        """
        Args:
            reduce_function: User-defined reduce function(key, values) -> str
        """
        self.reduce_function = reduce_function

    def sorted_keys(self, grouped_data):
        """Keys in ascending order (code point order, same as UTF-8 byte order)."""
        return sorted(grouped_data)

    def execute(self, grouped_data, out_file):
        """Reduce every key in sorted order and write the results to out_file

        Records go to `<out_file>.partial` first. Only after every record is
        written and synced is that file renamed onto out_file, so out_file
        exists only when it is complete. On failure the .partial file is
        left behind and out_file is absent.

        Args:
            grouped_data: Dict of {key: [values]}
            out_file: Destination path

        Returns:
            Number of records written
        """
        out_file = os.fspath(out_file)
        temp_path = out_file + PARTIAL_SUFFIX

        self.discard_output(out_file)

        count = 0
        try:
            with open(temp_path, 'w', encoding='utf-8') as out:
                encoder = KeyValueEncoder(out)
                for key in self.sorted_keys(grouped_data):
                    result = self._reduce(key, grouped_data[key])
                    encoder.encode(KeyValue(key, result))
                    count += 1
                out.flush()
                os.fsync(out.fileno())
            os.replace(temp_path, out_file)
        except (OSError, UnicodeError) as e:
            raise OutputWriteError(out_file, getattr(e, 'strerror', None) or str(e)) from e

        logger.info("Wrote %d records to %s", count, out_file)
        return count

    def _reduce(self, key, values):
        try:
            result = self.reduce_function(key, values)
        except Exception as e:
            raise ReduceFunctionError(key, f"{type(e).__name__}: {e}") from e

        if not isinstance(result, str):
            raise ReduceFunctionError(
                key, f"expected a str result, got {type(result).__name__}")
        try:
            result.encode('utf-8')
        except UnicodeEncodeError as e:
            raise ReduceFunctionError(key, f"result is not valid text: {e.reason}") from e
        return result

    def discard_output(self, out_file):
        """Remove any existing output so a failed attempt never leaves one behind."""
        try:
            os.remove(out_file)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise OutputWriteError(out_file, e.strerror or str(e)) from e


# Example reduce function for word count
def word_count_reduce(word, counts):
    """Reduce function for word count

    Args:
        word: The word
        counts: List of counts (all "1"s)

    Returns:
        Total count as a string
    """
    return str(sum(int(c) for c in counts))
