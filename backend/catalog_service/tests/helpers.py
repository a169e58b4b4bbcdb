# backend/catalog_service/tests/helpers.py

import io
import os
import struct
import zlib

from PIL import Image

from catalog.storage import BlobStore


class InMemoryBlobStore(BlobStore):
    """Blob store fake that also records the order of operations."""

    def __init__(self):
        super().__init__()
        self.blobs = {}
        self.calls = []
        self.fail_deletes = False

    def put(self, name, data, content_type):
        self.calls.append(("put", name))
        self.blobs[name] = (data, content_type)

    def delete(self, name):
        self.calls.append(("delete", name))
        if self.fail_deletes:
            raise OSError("disk unavailable")
        return self.blobs.pop(name, None) is not None

    def exists(self, name):
        return name in self.blobs

    def url(self, name):
        return f"memory://{self.namespace}/{name}"


def make_image(fmt="PNG", size=(8, 8), color=(200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_noise_image(size=(64, 64)) -> bytes:
    """PNG of random pixels, which barely compresses."""
    buffer = io.BytesIO()
    Image.frombytes("RGB", size, os.urandom(size[0] * size[1] * 3)).save(buffer, format="PNG")
    return buffer.getvalue()


def make_mpo() -> bytes:
    """Two-picture MPO, the JPEG variant many phone cameras produce."""
    buffer = io.BytesIO()
    first = Image.new("RGB", (8, 8), (10, 120, 200))
    second = Image.new("RGB", (8, 8), (200, 120, 10))
    first.save(buffer, format="MPO", save_all=True, append_images=[second])
    return buffer.getvalue()


def png_chunk(kind: bytes, payload: bytes) -> bytes:
    return (
        struct.pack(">I", len(payload))
        + kind
        + payload
        + struct.pack(">I", zlib.crc32(kind + payload) & 0xFFFFFFFF)
    )


def make_png_of_size(total: int) -> bytes:
    """Valid PNG padded to exactly ``total`` bytes with an ancillary chunk."""
    base = make_image("PNG")
    head, iend = base[:-12], base[-12:]
    padding = total - len(base) - 12
    return head + png_chunk(b"fiLl", b"\0" * padding) + iend


def make_bomb_png(width=20000, height=20000) -> bytes:
    """Tiny PNG header declaring far more pixels than Pillow will open."""
    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + png_chunk(b"IHDR", header) + png_chunk(b"IEND", b"")
