from typing import Union

from loguru import logger

from .chunk import ChunkHeader
from .errors import InvalidChunkType


class ResourceMap:
    """
    The optional `RES_XML_RESOURCE_MAP_TYPE` chunk: an array of resource
    IDs, index-aligned with the string pool. Entry `i` is the system
    attribute ID of the attribute whose name is string `i`.
    """

    def __init__(self, header: Union[ChunkHeader, None] = None) -> None:
        self.ids = []
        if header is None:
            return

        body_size = header.size - header.header_size
        if body_size % 4 != 0:
            raise InvalidChunkType(
                "Invalid chunk size in chunk XML_RESOURCE_MAP",
                offset=header.start,
                chunk_type=header.type,
                expected="multiple of 4",
                found=body_size,
            )

        buff = header.data
        buff.seek(header.header_size)
        for i in range(body_size // 4):
            self.ids.append(buff.read_u32())
            logger.debug(f"resourceIDs[{i}]: 0x{self.ids[i]:08x}")

    def __repr__(self):
        return "<ResourceMap #ids={}>".format(len(self.ids))

    def __len__(self):
        return len(self.ids)

    def __bool__(self):
        return bool(self.ids)

    def get(self, name_index: int) -> Union[int, None]:
        """
        Return the resource ID for the attribute name at `name_index`, if any
        """
        if 0 <= name_index < len(self.ids):
            return self.ids[name_index]
        return None
