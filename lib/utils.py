# SynthScan - Copyright (C) 2026 SynthScan Developers.
# This file is part of SynthScan.
# See the file 'docs/LICENSE.txt' for license terms.

import base64
import binascii
import re
from io import BytesIO
from urllib.parse import unquote_to_bytes

from PIL import Image

from lib.exceptions import ImageDecodeError


try:
    import chardet
    IS_CHARDET = True
except ImportError:
    IS_CHARDET = False


DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]*)*?),(?P<data>.*)$", re.S)


def to_unicode(data):
    """Attempt to fix non utf-8 string into utf-8. It tries to guess input encoding,
    if fail retry with a replace strategy (so undetectable chars will be escaped).
    @see: fuller list of encodings at http://docs.python.org/library/codecs.html#standard-encodings
    """

    def brute_enc(data):
        """Trying to decode via simple brute forcing."""
        result = None
        encodings = ("ascii", "utf8", "latin1")
        for enc in encodings:
            if result:
                break
            try:
                result = data.decode(enc)
            except (UnicodeDecodeError, AttributeError):
                pass
        return result

    def chardet_enc(data):
        """Guess encoding via chardet."""
        result = None
        enc = chardet.detect(data)["encoding"]

        try:
            result = data.decode(enc)
        except (UnicodeDecodeError, AttributeError, TypeError):
            pass

        return result

    if isinstance(data, str):
        return data

    if isinstance(data, (int, float)):
        return str(data)

    if isinstance(data, bytes):
        # First try to decode against a little set of common encodings.
        result = brute_enc(data)

        # Try via chardet.
        if not result and IS_CHARDET:
            result = chardet_enc(data)

        # If not possible to convert the input string, try again with
        # a replace strategy.
        if not result:
            result = data.decode("utf-8", errors="replace")

        return result

    return str(data)

def is_data_uri(text):
    """Checks if a string looks like a data URI.
    @param text: string
    @return: boolean
    """
    return isinstance(text, str) and text.startswith("data:")

def data_uri2bytes(uri):
    """Decodes a data URI into its binary payload.
    @param uri: data URI string (base64 or percent-encoded)
    @return: binary data
    @raise ImageDecodeError: if the URI is malformed
    """
    match = DATA_URI_RE.match(uri.strip())
    if not match:
        raise ImageDecodeError("Malformed data URI")

    params = match.group("params") or ""
    data = match.group("data")
    if ";base64" in params.lower():
        try:
            return base64.b64decode(data, validate=False)
        except (binascii.Error, ValueError) as e:
            raise ImageDecodeError(f"Invalid base64 payload in data URI: {e}")

    return unquote_to_bytes(data)

def payload2bytes(payload):
    """Normalizes a request payload into raw encoded bytes.
    @param payload: bytes, bytearray, memoryview or data URI string
    @return: binary data
    @raise ImageDecodeError: if the payload type is not supported
    """
    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, (bytearray, memoryview)):
        return bytes(payload)
    if is_data_uri(payload):
        return data_uri2bytes(payload)
    raise ImageDecodeError(f"Unsupported payload type: {type(payload).__name__}")

def bytes2data_uri(data, mime="image/png"):
    """Encodes binary data as a base64 data URI.
    @param data: binary data
    @param mime: content type
    @return: data URI string
    """
    return "data:{0};base64,{1}".format(mime, base64.b64encode(data).decode("ascii"))

def str2image(data):
    """Converts binary data to PIL Image object.
    @param data: binarydata
    @return: PIL Image object
    """
    output = BytesIO()
    output.write(data)
    output.seek(0)
    return Image.open(output)

def image2str(img, format="PNG", **params):
    """Converts PIL Image object to binary data.
    @param img: PIL Image object
    @param format: output format
    @return:  binary data
    """
    f = BytesIO()
    img.save(f, format, **params)
    return f.getvalue()
