'''
# Resource Interchange File Format

Container format used by WAV, AVI and WebP among the others. The file starts
with a header: the magic 'RIFF', the size of what follows and a FourCC that
identifies the content (the form). Then there is a list of chunks, each one
with an identifier, the size of the data and the data itself, padded to an
even number of bytes. All the integers are little endian.

See <https://www.loc.gov/preservation/digital/formats/fdd/fdd000025.shtml>.
'''
import io
from typing import List

from chunkio import fields
from chunkio.codec import decode
from chunkio.container import Chunk, ChunkContainer
from chunkio.core import Struct
from chunkio.enum import Compliant, WindowMode
from chunkio.exceptions import InvalidArgumentException
from chunkio.streams import BoundedStream, Stream


class RiffHeader(Struct):
    magic = fields.BytesField(4, default=b'RIFF', is_magic=True, compliant=Compliant.MAGIC)
    size  = fields.StructField('I')  # form + chunks
    form  = fields.BytesField(4)


class ChunkHeader(Struct):
    id   = fields.BytesField(4)
    size = fields.StructField('I')  # without the padding


class RiffChunk(Chunk):

    def __init__(self, id: bytes, data: bytes = b''):
        super().__init__()
        if len(id) != 4:
            raise InvalidArgumentException(f'the chunk id must be a FourCC, not {id!r}')

        self.id = id
        self.data = data

    def __repr__(self):
        return '<%s(%r, %d bytes)>' % (self.__class__.__name__, self.id, len(self.data))

    @property
    def index(self) -> int:
        '''Position of the chunk in the file containing it.'''
        if self.parent is None:
            raise ValueError(f'{self!r} is not in a file')

        return self.parent.chunks.index(self)

    @property
    def header(self) -> ChunkHeader:
        return ChunkHeader(id=self.id, size=len(self.data))


class RiffFile(ChunkContainer[RiffChunk]):
    chunk_type = RiffChunk
    detach_on_clear = True

    def __init__(self, form: bytes = b'    ', chunks=()):
        super().__init__(chunks)
        self.form = form

    def find(self, id: bytes) -> List[RiffChunk]:
        return [_ for _ in self.chunks if _.id == id]

    def load(self, stream):
        self._check_disposed()

        header = decode(RiffHeader, stream)
        self.logger.debug('RIFF form %r with size %d', header.form, header.size)

        self.form = header.form
        chunks = []

        # the form is included in the size
        with BoundedStream(stream, header.size - RiffHeader.form.size) as body:
            while body.position < body.length:
                chunk_header = decode(ChunkHeader, body)
                self.logger.debug('chunk %r at 0x%x with size %d', chunk_header.id, body.position, chunk_header.size)

                with BoundedStream(body, chunk_header.size) as window:
                    chunks.append(RiffChunk(chunk_header.id, Stream(window).read_all()))

                if chunk_header.size % 2 and body.position < body.length:
                    body.seek(1, io.SEEK_CUR)

        self.chunks.clear()
        self.chunks.extend(chunks)

    def save(self, stream):
        '''Write the file at the current position of the stream; data already
        present after the written file is left untouched.'''
        self._check_disposed()

        start = stream.tell()
        stream.write(RiffHeader(form=self.form).pack())

        with BoundedStream(stream, mode=WindowMode.WRITE) as body:
            for chunk in self.chunks:
                chunk.header.pack(body)
                body.write(chunk.data)
                if len(chunk.data) % 2:
                    body.write(b'\x00')

            # the stream can be longer than what has been written
            size = body.position + RiffHeader.form.size

        with Stream(stream).preserve_position():
            stream.seek(start, io.SEEK_SET)
            stream.write(RiffHeader(size=size, form=self.form).pack())

        self.logger.debug('saved %d chunks (%d bytes)', len(self.chunks), stream.tell() - start)
