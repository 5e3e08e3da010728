#!/usr/bin/env python3
import logging
import os
import sys

from chunkio.formats.riff import RiffFile


logging.basicConfig(level=logging.DEBUG if 'DEBUG' in os.environ else logging.INFO)


def usage(progname):
    print('usage: %s <riff file>' % progname)
    sys.exit(1)


def dump_chunks(riff):
    print(f'''RIFF form: {riff.form.decode('latin1')}
 Idx  Id    Size       Data''')
    for chunk in riff.chunks:
        preview = chunk.data[:16].hex()
        print(f''' {chunk.index:>3}  {chunk.id.decode('latin1')}  0x{len(chunk.data):08x} {preview}''')


if __name__ == '__main__':
    if len(sys.argv) < 2:
        usage(sys.argv[0])

    with RiffFile() as riff:
        riff.load_path(sys.argv[1])
        dump_chunks(riff)
