"""
Record encoding for intermediate and reduce output files.

Each record is a JSON object {"Key": ..., "Value": ...} followed by a
newline. Records are written back-to-back with no other framing, so a file
is decoded by repeatedly pulling the next JSON value off the stream. The
partition merge step reads reduce output in this same format.
"""

import json
from collections import namedtuple

from mapreduce.framework.errors import DecodeError


KeyValue = namedtuple('KeyValue', ['key', 'value'])

DEFAULT_CHUNK_SIZE = 64 * 1024

_WHITESPACE = ' \t\n\r'


class KeyValueEncoder:
    """Writes KeyValue records to a text stream."""

    def __init__(self, stream):
        self.stream = stream

    def encode(self, kv):
        key, value = kv
        record = json.dumps({'Key': key, 'Value': value},
                            ensure_ascii=False, separators=(',', ':'))
        self.stream.write(record + '\n')


class KeyValueDecoder:
    """Incremental decoder for a stream of KeyValue records.

    The stream is read `chunk_size` characters at a time. Only the
    unconsumed tail of the data is buffered, so memory use is bounded by the
    chunk size plus the largest single record.

    Usage:
        decoder = KeyValueDecoder(f)
        while decoder.more():
            kv = decoder.decode()

    or simply iterate over the decoder.
    """

    def __init__(self, stream, chunk_size=DEFAULT_CHUNK_SIZE, source=None):
        self.stream = stream
        self.chunk_size = chunk_size
        self.source = source or getattr(stream, 'name', '<stream>')

        self._json = json.JSONDecoder()
        self._buffer = ''
        self._pos = 0
        self._consumed = 0  # characters dropped from the front of the buffer
        self._eof = False

    def _offset(self):
        return self._consumed + self._pos

    def _fill(self, size=None):
        """Append the next chunk to the buffer. Returns False at end of stream."""
        if self._eof:
            return False

        try:
            chunk = self.stream.read(size or self.chunk_size)
        except UnicodeDecodeError as e:
            raise DecodeError(self.source, f"invalid UTF-8 ({e.reason})",
                              self._consumed + len(self._buffer)) from e

        if not chunk:
            self._eof = True
            return False

        self._consumed += self._pos
        self._buffer = self._buffer[self._pos:] + chunk
        self._pos = 0
        return True

    def _skip_whitespace(self):
        while True:
            while (self._pos < len(self._buffer)
                   and self._buffer[self._pos] in _WHITESPACE):
                self._pos += 1
            if self._pos < len(self._buffer):
                return True
            if not self._fill():
                return False

    def more(self):
        """Whether another record follows in the stream."""
        return self._skip_whitespace()

    def decode(self):
        """Decode the next record.

        Raises:
            EOFError: the stream holds no further records
            DecodeError: the next record is malformed or truncated
        """
        if not self._skip_whitespace():
            raise EOFError(f"No more records in {self.source}")

        start = self._offset()
        read_size = self.chunk_size
        while True:
            try:
                obj, end = self._json.raw_decode(self._buffer, self._pos)
                break
            except json.JSONDecodeError as e:
                # The record may continue past the buffer; read twice as much each retry
                if self._fill(read_size):
                    read_size *= 2
                    continue
                raise DecodeError(self.source, e.msg, self._consumed + e.pos) from e

        self._pos = end
        return self._to_key_value(obj, start)

    def _to_key_value(self, obj, offset):
        if not isinstance(obj, dict):
            raise DecodeError(self.source,
                              f"expected an object, got {type(obj).__name__}", offset)

        for field in ('Key', 'Value'):
            if field not in obj:
                raise DecodeError(self.source, f"missing field {field!r}", offset)
            if not isinstance(obj[field], str):
                raise DecodeError(
                    self.source,
                    f"field {field!r} must be a string, got {type(obj[field]).__name__}",
                    offset)

        return KeyValue(_replace_surrogates(obj['Key']), _replace_surrogates(obj['Value']))

    def __iter__(self):
        while self.more():
            yield self.decode()


def _replace_surrogates(text):
    """Replace each lone surrogate (e.g. from a "\\ud800" escape) with U+FFFD.

    Such strings are valid JSON but cannot be written back out as UTF-8.
    """
    try:
        text.encode('utf-8')
    except UnicodeEncodeError:
        return text.encode('utf-16-le', 'surrogatepass').decode('utf-16-le', 'replace')
    return text
