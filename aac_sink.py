import sys

from tqdm import tqdm


class StreamSink:
    '''
    desc: writes lines to an already open text stream (stdout by default)
    '''

    def __init__(self, stream=None, progress=False):
        self.stream = stream if stream is not None else sys.stdout
        self.progress = progress

    def write(self, lines):
        lines_to_write = tqdm(lines, desc='writing lines', unit='line', disable=not self.progress, file=sys.stderr)
        for line in lines_to_write:
            self.stream.write(line + '\n')

    def close(self):
        self.stream.flush()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class FileSink(StreamSink):
    '''
    desc: truncates and writes a text file; raises OSError at construction if it cannot be opened
    '''

    def __init__(self, path, progress=False):
        self.path = path
        super().__init__(open(path, 'w', encoding='utf-8'), progress)

    def close(self):
        self.stream.close()


def open_sink(path=None, progress=False):
    if path is None:
        return StreamSink(progress=progress)
    return FileSink(path, progress)
