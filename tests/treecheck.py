from avlindex.indexing import height, size


def check_invariants(tree):
    """Walk every node of tree and assert the AVL invariants; return the node count."""
    root = tree.get_root()
    if root is None:
        assert len(tree) == 0
        assert tree.keys_to_array() == []
        return 0
    assert root.get_parent() is None

    def walk(node, lo, hi):
        if node is None:
            return 0
        key = node.get_key()
        assert lo is None or lo < key, f"BST order broken at {key}"
        assert hi is None or key < hi, f"BST order broken at {key}"
        left, right = node.get_left(), node.get_right()
        for child in (left, right):
            if child is not None:
                assert child.get_parent() is node, f"parent link broken under {key}"
        count = walk(left, lo, key) + walk(right, key, hi) + 1
        assert node.get_height() == 1 + max(height(left), height(right)), f"stale height at {key}"
        assert node.get_size() == size(left) + size(right) + 1, f"stale size at {key}"
        assert abs(height(left) - height(right)) <= 1, f"unbalanced at {key}"
        return count

    count = walk(root, None, None)
    keys = tree.keys_to_array()
    assert count == len(tree) == len(keys)
    assert all(a < b for a, b in zip(keys, keys[1:]))
    return count
