import stat
import unittest

from unyaffs.header import HEADER_SIZE, ObjectType, decode_header
from unyaffs.tags import ChunkKind, decode_tags

from tests.imagebuilder import pack_header, pack_tags


class TestPackedTags(unittest.TestCase):
    def test_header_chunk(self) -> None:
        t = decode_tags(pack_tags(258, 0, 0xFFFF, sequence=0x1001))
        self.assertEqual(t.kind, ChunkKind.HEADER)
        self.assertTrue(t.is_header)
        self.assertEqual((t.sequence, t.object_id, t.chunk_id), (0x1001, 258, 0))

    def test_data_chunk(self) -> None:
        t = decode_tags(pack_tags(258, 3, 1337))
        self.assertEqual(t.kind, ChunkKind.DATA)
        self.assertEqual(t.byte_count, 1337)
        self.assertEqual(t.chunk_id, 3)

    def test_erased_spare_is_empty(self) -> None:
        t = decode_tags(b"\xff" * 64)
        self.assertEqual(t.kind, ChunkKind.EMPTY)
        self.assertTrue(t.is_empty)

    def test_offset(self) -> None:
        buf = b"\0" * 2048 + pack_tags(300, 1, 10)
        self.assertEqual(decode_tags(buf, 2048).object_id, 300)


class TestObjectHeader(unittest.TestCase):
    def test_record_size(self) -> None:
        self.assertEqual(HEADER_SIZE, 512)

    def test_file_fields(self) -> None:
        raw = pack_header(ObjectType.FILE, 1, "build.prop", mode=stat.S_IFREG | 0o644,
                          uid=1000, gid=2000, atime=11, mtime=22, ctime=33, file_size=4096)
        oh = decode_header(raw)
        self.assertIs(oh.type, ObjectType.FILE)
        self.assertEqual(oh.parent_id, 1)
        self.assertEqual(oh.name, "build.prop")
        self.assertEqual(oh.mode, stat.S_IFREG | 0o644)
        self.assertEqual((oh.uid, oh.gid), (1000, 2000))
        self.assertEqual((oh.atime, oh.mtime, oh.ctime), (11, 22, 33))
        self.assertEqual(oh.file_size, 4096)

    def test_symlink_alias_and_hardlink_target(self) -> None:
        oh = decode_header(pack_header(ObjectType.SYMLINK, 5, "sh", alias="/system/bin/mksh"))
        self.assertEqual(oh.alias, "/system/bin/mksh")
        oh = decode_header(pack_header(ObjectType.HARDLINK, 5, "ls", equivalent_id=300))
        self.assertEqual(oh.equivalent_id, 300)

    def test_name_stops_at_nul(self) -> None:
        raw = bytearray(pack_header(ObjectType.DIRECTORY, 1, "abc"))
        raw[10 + 4:10 + 8] = b"junk"    # garbage after the terminator
        self.assertEqual(decode_header(bytes(raw)).name, "abc")

    def test_non_utf8_name_survives(self) -> None:
        oh = decode_header(pack_header(ObjectType.FILE, 1, b"caf\xe9"))
        self.assertEqual(oh.name.encode("utf-8", "surrogateescape"), b"caf\xe9")

    def test_unknown_type_stays_int(self) -> None:
        oh = decode_header(pack_header(9, 1, "x"))
        self.assertEqual(oh.type, 9)
        self.assertNotIsInstance(oh.type, ObjectType)

    def test_large_file_size(self) -> None:
        raw = pack_header(ObjectType.FILE, 1, "big", file_size=0x10, file_size_high=1)
        self.assertEqual(decode_header(raw).file_size, (1 << 32) | 0x10)

    def test_unset_file_size_is_zero(self) -> None:
        raw = pack_header(ObjectType.DIRECTORY, 1, "d", file_size=-1)
        self.assertEqual(decode_header(raw).file_size, 0)

    def test_special_rdev(self) -> None:
        oh = decode_header(pack_header(ObjectType.SPECIAL, 1, "null",
                                       mode=stat.S_IFCHR | 0o666, rdev=0x0103))
        self.assertEqual(oh.rdev, 0x0103)


if __name__ == "__main__":
    unittest.main()
