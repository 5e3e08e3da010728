'''
# Chunk containers

A chunked file is an ordered list of chunks: the container keeps for each chunk
a reference back to itself (chunk.parent) in sync with the list. The reference
is only for lookup, the container doesn't own the chunks beyond the list.

Concrete formats subclass ChunkContainer implementing load() and save().
'''
import logging
from collections.abc import MutableSequence
from typing import Generic, Iterable, List, Optional, TypeVar

from .exceptions import DisposedException, InvalidArgumentException


logger = logging.getLogger(__name__)


class Chunk(object):
    '''Base class for the elements of a ChunkContainer.

    The parent is written only by the container. If a chunk has a close()
    method it is called when the container is closed, after the chunk has
    been detached.'''

    def __init__(self):
        self._parent = None

    @property
    def parent(self) -> Optional["ChunkContainer"]:
        return self._parent


TChunk = TypeVar('TChunk', bound=Chunk)


class ChunkList(MutableSequence):
    '''List of chunks that updates the parent of the chunks added/removed.'''

    def __init__(self, owner: "ChunkContainer"):
        self._owner = owner
        self._items: List[Chunk] = []

    def _get_owner(self) -> "ChunkContainer":
        if self._owner is None:
            raise DisposedException('the container owning the chunks has been closed')

        return self._owner

    def __repr__(self):
        return '<%s(%r)>' % (self.__class__.__name__, self._items)

    def __len__(self):
        return len(self._items)

    def __getitem__(self, index):
        self._get_owner()
        return self._items[index]

    def __contains__(self, chunk):
        return any(_ is chunk for _ in self._items)

    def __setitem__(self, index, value):
        owner = self._get_owner()

        if isinstance(index, slice):
            new = list(value)
            old = self._items[index]
        else:
            new = [value]
            old = [self._items[index]]

        for chunk in new:
            owner._check_chunk(chunk)

        self._items[index] = value if not isinstance(index, slice) else new

        for chunk in old:
            owner._detach(chunk)
        for chunk in new:
            owner._attach(chunk)

    def __delitem__(self, index):
        owner = self._get_owner()

        old = self._items[index] if isinstance(index, slice) else [self._items[index]]
        del self._items[index]

        for chunk in old:
            owner._detach(chunk)

    def insert(self, index, chunk):
        owner = self._get_owner()
        owner._check_chunk(chunk)

        self._items.insert(index, chunk)
        owner._attach(chunk)

    def index(self, chunk, start=0, stop=None):
        '''Position of the chunk, compared by identity.'''
        stop = len(self._items) if stop is None else stop
        for idx in range(start, min(stop, len(self._items))):
            if self._items[idx] is chunk:
                return idx

        raise ValueError(f'{chunk!r} is not in the list')

    def clear(self):
        '''Remove all the chunks at once: unless the owner sets detach_on_clear
        the removed chunks keep their parent.'''
        owner = self._get_owner()
        removed, self._items = self._items, []

        if owner.detach_on_clear:
            for chunk in removed:
                owner._detach(chunk)
        elif removed:
            logger.warning('%d chunks removed from %r keep their parent', len(removed), owner)

    def _release(self) -> List[Chunk]:
        '''Detach from the owner, no more changes are accepted.'''
        self._owner = None
        released, self._items = self._items, []

        return released


class ChunkContainer(Generic[TChunk]):
    '''Base class of a chunked file: subclasses implement load() and save().'''

    chunk_type = Chunk

    # a bulk clear() doesn't reset the parent of the removed chunks by default
    detach_on_clear = False

    def __init__(self, chunks: Iterable[TChunk] = ()):
        self.logger = logging.getLogger(f'{self.__module__}.{self.__class__.__name__}')
        self._closed = False
        self._chunks: Optional[ChunkList] = None

        self.chunks.extend(chunks)

    def __repr__(self):
        return '<%s(%s)>' % (
            self.__class__.__name__,
            'closed' if self._closed else '%d chunks' % len(self._chunks or ()),
        )

    def _check_disposed(self):
        if self._closed:
            raise DisposedException('%s has been closed' % self.__class__.__name__)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def chunks(self) -> ChunkList:
        self._check_disposed()
        if self._chunks is None:
            self._chunks = ChunkList(self)

        return self._chunks

    def __len__(self):
        return len(self.chunks)

    def __iter__(self):
        return iter(self.chunks)

    def _holds(self, chunk) -> bool:
        return self._chunks is not None and chunk in self._chunks

    def _check_chunk(self, chunk):
        if not isinstance(chunk, self.chunk_type):
            raise InvalidArgumentException('expected \'%s\', not \'%s\'' % (
                self.chunk_type.__name__,
                chunk.__class__.__name__,
            ))

        parent = chunk.parent
        if parent is not None and parent is not self and parent._holds(chunk):
            raise InvalidArgumentException(f'{chunk!r} already belongs to {parent!r}')

    def _attach(self, chunk):
        self.logger.debug('attaching %r', chunk)
        chunk._parent = self

    def _detach(self, chunk):
        # the same chunk can appear more than once
        if self._holds(chunk):
            return

        self.logger.debug('detaching %r', chunk)
        chunk._parent = None

    def load(self, stream):
        raise NotImplementedError(f'you need to implement {self.__class__.__name__}.load()')

    def save(self, stream):
        raise NotImplementedError(f'you need to implement {self.__class__.__name__}.save()')

    def load_path(self, path):
        '''Read the file at path: it's opened for reading only.'''
        self._check_disposed()
        self.logger.debug('loading \'%s\'', path)

        with open(path, 'rb') as f:
            self.load(f)

    def save_path(self, path):
        '''Write the file at path, replacing it if already present.'''
        self._check_disposed()
        self.logger.debug('saving \'%s\'', path)

        with open(path, 'wb') as f:
            self.save(f)

    def close(self):
        '''Close the chunks that can be closed; it's safe to call it more than once.

        The chunks are detached before being closed; if a close() fails the
        container is closed anyway and the exception is propagated.'''
        if self._closed:
            return

        released = self._chunks._release() if self._chunks is not None else []
        # a chunk present more than once is closed once
        released = list({id(_): _ for _ in released}.values())

        try:
            for chunk in released:
                self._detach(chunk)

            for chunk in released:
                close = getattr(chunk, 'close', None)
                if callable(close):
                    close()
        finally:
            self._closed = True

    def __enter__(self):
        self._check_disposed()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
