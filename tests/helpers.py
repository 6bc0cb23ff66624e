from mapreduce.framework.codec import KeyValueDecoder


def read_output(path):
    """Decode every record of a reduce output file."""
    with open(path, encoding='utf-8') as f:
        return [tuple(kv) for kv in KeyValueDecoder(f)]


def sum_reduce(key, values):
    return str(sum(int(v) for v in values))


def join_reduce(key, values):
    return ','.join(sorted(values))
