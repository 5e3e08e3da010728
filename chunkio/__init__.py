"""
# Chunkio: building blocks for chunked binary formats.

A chunked file format is a sequence of chunks, each one usually made of a
header describing the chunk followed by its data. Three pieces are provided
to build readers and writers of such formats:

 1. records (core.Struct) described by fields (fields.*) and the codec
    (codec.decode()/codec.encode()) converting them from/to bytes with a
    packed layout, i.e. no padding between the fields.

 2. windows over a stream (streams.BoundedStream) so that a chunk's data
    can be read without the risk of crossing into the next chunk.

 3. containers (container.ChunkContainer) keeping the list of the chunks of
    a file, each chunk knowing the container it belongs to.

A typical load() of a format reads the header with the codec, opens a window
on the data of the chunk and appends the resulting chunk to the container:

    header = decode(ChunkHeader, stream)
    window = BoundedStream(stream, header.size)
    self.chunks.append(MyChunk(header.id, window.read()))

See formats.riff for a complete example.
"""
