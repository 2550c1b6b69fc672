import math
from typing import Iterator, List, Optional, Union

from lazystore.core.exceptions import DuplicateKeyError
from lazystore.storage.page import Page


class _Node:
    """
    An immutable AVL tree node.

    Nodes are never modified once built. Every mutation of the tree
    copies the nodes on the path from the root to the change and shares
    everything else with the previous tree.
    """

    __slots__ = ("key", "page", "left", "right", "height")

    def __init__(self, key: int, page: Page,
                 left: Optional["_Node"], right: Optional["_Node"]):
        self.key = key
        self.page = page
        self.left = left
        self.right = right
        self.height = 1 + max(_height(left), _height(right))


def _height(node: Optional[_Node]) -> int:
    return node.height if node is not None else 0


def _rotate_right(key: int, page: Page, left: _Node, right: Optional[_Node]) -> _Node:
    return _Node(left.key, left.page, left.left,
                 _Node(key, page, left.right, right))


def _rotate_left(key: int, page: Page, left: Optional[_Node], right: _Node) -> _Node:
    return _Node(right.key, right.page,
                 _Node(key, page, left, right.left), right.right)


def _balance(key: int, page: Page,
             left: Optional[_Node], right: Optional[_Node]) -> _Node:
    """Build a node, rotating when the subtrees differ in height by two."""
    skew = _height(left) - _height(right)

    if skew > 1:
        if _height(left.left) < _height(left.right):
            left = _rotate_left(left.key, left.page, left.left, left.right)
        return _rotate_right(key, page, left, right)

    if skew < -1:
        if _height(right.right) < _height(right.left):
            right = _rotate_right(right.key, right.page, right.left, right.right)
        return _rotate_left(key, page, left, right)

    return _Node(key, page, left, right)


def _insert(node: Optional[_Node], key: int, page: Page) -> _Node:
    if node is None:
        return _Node(key, page, None, None)
    if key < node.key:
        return _balance(node.key, node.page, _insert(node.left, key, page), node.right)
    if key > node.key:
        return _balance(node.key, node.page, node.left, _insert(node.right, key, page))
    raise DuplicateKeyError(f"Page offset {key} is already indexed")


def _delete_min(node: _Node) -> Optional[_Node]:
    if node.left is None:
        return node.right
    return _balance(node.key, node.page, _delete_min(node.left), node.right)


def _delete(node: Optional[_Node], key: int) -> Optional[_Node]:
    if node is None:
        return None

    if key < node.key:
        left = _delete(node.left, key)
        if left is node.left:
            return node
        return _balance(node.key, node.page, left, node.right)

    if key > node.key:
        right = _delete(node.right, key)
        if right is node.right:
            return node
        return _balance(node.key, node.page, node.left, right)

    if node.left is None:
        return node.right
    if node.right is None:
        return node.left

    successor = _min_node(node.right)
    return _balance(successor.key, successor.page, node.left, _delete_min(node.right))


def _replace(node: _Node, key: int, page: Page) -> _Node:
    if key < node.key:
        return _Node(node.key, node.page, _replace(node.left, key, page), node.right)
    if key > node.key:
        return _Node(node.key, node.page, node.left, _replace(node.right, key, page))
    return _Node(key, page, node.left, node.right)


def _min_node(node: _Node) -> _Node:
    while node.left is not None:
        node = node.left
    return node


def _max_node(node: _Node) -> _Node:
    while node.right is not None:
        node = node.right
    return node


def _collect_range(node: Optional[_Node], low: float, high: float,
                   out: List[Page]) -> None:
    if node is None:
        return
    if low < node.key:
        _collect_range(node.left, low, high, out)
    if low <= node.key < high:
        out.append(node.page)
    if node.key < high:
        _collect_range(node.right, low, high, out)


class PageIndex:
    """
    Persistent ordered map from page offset to Page.

    This is a balanced (AVL) binary search tree that never changes once
    built: insert, delete and replace each return a new PageIndex that
    shares every untouched sub-tree with the receiver. A Store snapshot can
    therefore keep reading its index while newer snapshots are derived
    from it.

    Complexity:
    - insert / delete / replace / search: O(log n)
    - min_key / max_key: O(log n)
    - range_between: O(k + log n) for k pages returned
    """

    __slots__ = ("_root", "_size")

    def __init__(self, _root: Optional[_Node] = None, _size: int = 0):
        self._root = _root
        self._size = _size

    # =================== MUTATIONS ===================

    def insert(self, key: int, page: Page) -> "PageIndex":
        """
        Return a new index with page stored under key.

        Raises:
            DuplicateKeyError: If key is already indexed
        """
        return PageIndex(_insert(self._root, key, page), self._size + 1)

    def delete(self, key: int) -> "PageIndex":
        """Return a new index without key. Deleting an absent key returns self."""
        root = _delete(self._root, key)
        if root is self._root:
            return self
        return PageIndex(root, self._size - 1)

    def replace(self, key: int, page: Page) -> "PageIndex":
        """
        Return a new index with the page under an existing key swapped.

        Raises:
            KeyError: If key is not indexed
        """
        if key not in self:
            raise KeyError(key)
        return PageIndex(_replace(self._root, key, page), self._size)

    # =================== LOOKUPS ===================

    def get(self, key: int) -> Optional[Page]:
        node = self._root
        while node is not None:
            if key < node.key:
                node = node.left
            elif key > node.key:
                node = node.right
            else:
                return node.page
        return None

    def search(self, key: int) -> List[Page]:
        """Point lookup returning a list with zero or one page."""
        page = self.get(key)
        return [page] if page is not None else []

    def min_key(self) -> Optional[int]:
        if self._root is None:
            return None
        return _min_node(self._root).key

    def max_key(self) -> Optional[int]:
        if self._root is None:
            return None
        return _max_node(self._root).key

    def range_between(self, low: Union[int, float] = 0,
                      high: Union[int, float] = math.inf) -> List[Page]:
        """Pages with low <= offset < high, in ascending offset order."""
        pages: List[Page] = []
        if low < high:
            _collect_range(self._root, low, high, pages)
        return pages

    def keys(self) -> List[int]:
        return [node.key for node in self._walk()]

    @property
    def height(self) -> int:
        return _height(self._root)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, int) and self.get(key) is not None

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[Page]:
        for node in self._walk():
            yield node.page

    def _walk(self) -> Iterator[_Node]:
        """In-order traversal of the tree nodes."""
        stack: List[_Node] = []
        node = self._root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node
            node = node.right

    def __str__(self) -> str:
        return f"PageIndex(size={self._size}, keys={self.keys()})"

    def __repr__(self) -> str:
        return self.__str__()
