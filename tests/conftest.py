import io

import pytest


# all the characters are in the basic multilingual plane
UTF8_STRING = 'Şớოε şặмрĺê ÄŚĈÍ|-ť℮χŧ'


@pytest.fixture
def utf8_string():
    return UTF8_STRING


@pytest.fixture
def data_stream():
    '''1KiB stream where each byte is its offset modulo 256.'''
    return io.BytesIO(bytes(range(256)) * 4)
