"""File naming convention shared by map and reduce tasks."""


def reduce_name(job_name, map_task, reduce_task):
    """Name of the intermediate file map task `map_task` writes for
    reduce partition `reduce_task`."""
    return f"mrtmp.{job_name}-{map_task}-{reduce_task}"


def merge_name(job_name, reduce_task):
    """Name of the output file produced by reduce partition `reduce_task`."""
    return f"mrtmp.{job_name}-res-{reduce_task}"
