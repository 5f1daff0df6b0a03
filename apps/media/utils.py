"""
Display helpers for media sizes and durations.
"""
SIZE_UNITS = ['Bytes', 'KB', 'MB', 'GB']


def format_bytes(num_bytes):
    """
    Human-readable size with up to two decimals.

    >>> format_bytes(10 * 1024 * 1024)
    '10 MB'
    >>> format_bytes(1536)
    '1.5 KB'
    """
    if not num_bytes:
        return '0 Bytes'
    index = 0
    while num_bytes >= 1024 ** (index + 1) and index < len(SIZE_UNITS) - 1:
        index += 1
    value = round(num_bytes / (1024 ** index), 2)
    return f'{value:g} {SIZE_UNITS[index]}'


def format_duration(seconds):
    """``m:ss`` below an hour, ``h:mm:ss`` above; empty for unknown durations."""
    if not seconds:
        return ''
    seconds = int(seconds)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f'{hours}:{minutes:02d}:{secs:02d}'
    return f'{minutes}:{secs:02d}'
