from dataclasses import dataclass
from typing import Tuple, Union


@dataclass(frozen=True)
class InputPortId:
    node_id: int
    port_index: int

    def sort_key(self) -> Tuple[int, int, int]:
        return (self.node_id, 0, self.port_index)

    def __str__(self):
        return f"in({self.node_id}:{self.port_index})"


@dataclass(frozen=True)
class OutputPortId:
    node_id: int
    port_index: int

    def sort_key(self) -> Tuple[int, int, int]:
        return (self.node_id, 1, self.port_index)

    def __str__(self):
        return f"out({self.node_id}:{self.port_index})"


PortId = Union[InputPortId, OutputPortId]


def port_sort_key(port: PortId) -> Tuple[int, int, int]:
    """Orders ports by node, then inputs before outputs, then index."""
    return port.sort_key()
