import dataclasses
import json
import os
import unittest
import warnings

from treevis.DerivationTree import CATEGORY, FUNCTION, DerivationTree, build_derivation_tree
from treevis.GrammarErrors import UnknownCategory, UnknownNode
from treevis.GrammarModel import Grammar

FOODS_PATH = os.path.join(os.path.dirname(__file__), "..", "Samples", "Foods", "Foods.json")

def abstract_grammar(startcat: str, funs: dict):
    return Grammar.from_document({"abstract": {"name": "T", "startcat": startcat, "funs": funs}}).abstract

"""
This module tests the construction of derivation trees, especially that recursive
grammars terminate and that node ids are stable and unique.
"""
class DerivationTreeTest(unittest.TestCase):

    def check_ids(self, node: dict):
        ids = {}
        def _check(n):
            # all nodes have to have different ids
            if n["id"] in ids:
                self.fail("[TREE] All nodes should have different ids")
            ids[n["id"]] = True
            for child in n["children"]:
                _check(child)
        _check(node)

    def check_category(self, node, name: str, num_children: int):
        self.assertEqual(CATEGORY, node.kind, f"[TREE] {node.id} should be a category node")
        self.assertEqual(name, node.display_name, f"[TREE] {node.id} should be {name}")
        self.assertEqual(num_children, len(node.children), f"[TREE] {name} should have {num_children} children")

    def check_function(self, node, name: str, num_children: int):
        self.assertEqual(FUNCTION, node.kind, f"[TREE] {node.id} should be a function node")
        self.assertEqual(name, node.display_name, f"[TREE] {node.id} should be {name}")
        self.assertEqual(num_children, len(node.children), f"[TREE] {name} should have {num_children} children")

    def test_simple_sentence_grammar(self):
        """
        S -> Pred(NP, VP), NP -> John, VP -> Run.
        """
        grammar = abstract_grammar("S", {"Pred": {"args": ["NP", "VP"], "cat": "S"},
                                         "John": {"args": [], "cat": "NP"},
                                         "Run": {"args": [], "cat": "VP"}})
        tree = DerivationTree.from_grammar(grammar)

        self.check_category(tree.root, "S", 1)
        pred = tree.root.children[0]
        self.check_function(pred, "Pred", 2)

        np, vp = pred.children
        self.check_category(np, "NP", 1)
        self.check_category(vp, "VP", 1)
        self.check_function(np.children[0], "John", 0)
        self.check_function(vp.children[0], "Run", 0)
        self.check_ids(tree.to_dict())

    def test_leaf_category_without_functions(self):
        grammar = abstract_grammar("S", {"Say": {"args": ["Quote"], "cat": "S"}})
        with self.assertWarns(UnknownCategory):
            tree = DerivationTree.from_grammar(grammar)
        quote = tree.root.children[0].children[0]
        self.check_category(quote, "Quote", 0)
        self.assertTrue(quote.expanded)

    def test_unknown_category_reported_once(self):
        grammar = abstract_grammar("S", {"Say": {"args": ["Quote"], "cat": "S"},
                                         "Shout": {"args": ["Quote"], "cat": "S"},
                                         "Both": {"args": ["T"], "cat": "S"},
                                         "Twice": {"args": ["Quote"], "cat": "T"}})
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            DerivationTree.from_grammar(grammar)
        unknown = [w for w in caught if issubclass(w.category, UnknownCategory)]
        self.assertEqual(1, len(unknown))

    def test_self_recursion_terminates(self):
        """
        NP -> And(NP, NP) | John: the recursive arguments are cut to leaves.
        """
        grammar = abstract_grammar("NP", {"And": {"args": ["NP", "NP"], "cat": "NP"},
                                          "John": {"args": [], "cat": "NP"}})
        tree = DerivationTree.from_grammar(grammar)

        self.check_category(tree.root, "NP", 2)
        conj = tree.root.children[0]
        self.check_function(conj, "And", 2)
        for arg in conj.children:
            self.check_category(arg, "NP", 0)
            self.assertFalse(arg.expanded)
        self.assertEqual(3, tree.depth())

        snapshot = tree.snapshot()
        self.assertTrue(snapshot.expanded)
        self.assertEqual([False, False], [arg.expanded for arg in snapshot.children[0].children])
        self.assertTrue(snapshot.children[1].expanded)

    def test_mutual_recursion_depth_is_bounded(self):
        """
        A -> f(B), B -> g(C), C -> h(A): the longest simple path is A, B, C.
        """
        grammar = abstract_grammar("A", {"f": {"args": ["B"], "cat": "A"},
                                         "g": {"args": ["C"], "cat": "B"},
                                         "h": {"args": ["A"], "cat": "C"}})
        tree = DerivationTree.from_grammar(grammar)
        # A f B g C h A(cut)
        self.assertEqual(7, tree.depth())
        categories = [n.display_name for n in tree.walk() if n.kind == CATEGORY]
        self.assertEqual(["A", "B", "C", "A"], categories)

    def test_category_recurs_on_independent_branches(self):
        grammar = abstract_grammar("S", {"Pred": {"args": ["NP", "VP"], "cat": "S"},
                                         "Obj": {"args": ["NP"], "cat": "VP"},
                                         "John": {"args": [], "cat": "NP"}})
        tree = DerivationTree.from_grammar(grammar)
        np, vp = tree.root.children[0].children
        self.check_category(np, "NP", 1)
        obj_np = vp.children[0].children[0]
        # NP is not on the path S, VP, so it is expanded again below VP
        self.check_category(obj_np, "NP", 1)
        self.assertTrue(obj_np.expanded)

    def test_repeated_argument_expanded_once_below_category(self):
        grammar = abstract_grammar("S", {"Pred": {"args": ["NP", "NP"], "cat": "S"},
                                         "Intr": {"args": ["NP"], "cat": "S"},
                                         "John": {"args": [], "cat": "NP"}})
        tree = DerivationTree.from_grammar(grammar)
        pred, intr = tree.root.children
        first, second = pred.children
        self.check_category(first, "NP", 1)
        self.assertTrue(first.expanded)
        self.check_category(second, "NP", 0)
        self.assertFalse(second.expanded)
        self.check_category(intr.children[0], "NP", 0)
        self.assertFalse(intr.children[0].expanded)

    def test_acyclic_nodes_match_declared_categories(self):
        grammar = abstract_grammar("S", {"Pred": {"args": ["NP", "VP"], "cat": "S"},
                                         "Det": {"args": ["N"], "cat": "NP"},
                                         "Walk": {"args": [], "cat": "VP"},
                                         "Dog": {"args": [], "cat": "N"}})
        tree = DerivationTree.from_grammar(grammar)
        declared = set(grammar.categories())
        for node in tree.walk():
            if node.kind == CATEGORY:
                self.assertIn(node.display_name, declared)
            else:
                self.assertIn(node.display_name, grammar.functions)

    def test_foods_tree(self):
        with open(FOODS_PATH, "r", encoding="utf-8") as f:
            grammar = Grammar.from_document(json.load(f)).abstract
        tree = DerivationTree.from_grammar(grammar)

        self.check_category(tree.root, "Comment", 1)
        item, quality = tree.root.children[0].children
        self.check_category(item, "Item", 2)
        self.check_category(quality, "Quality", 7)

        this, that = item.children
        kind = this.children[0]
        self.check_category(kind, "Kind", 4)
        # Kind below That was already expanded below This
        self.check_category(that.children[0], "Kind", 0)

        mod = kind.children[0]
        self.check_function(mod, "Mod", 2)
        mod_quality, mod_kind = mod.children
        self.check_category(mod_quality, "Quality", 7)
        self.check_category(mod_kind, "Kind", 0)

        # Comment Pred Item This Kind Mod Quality Very Quality
        self.assertEqual(9, tree.depth())
        self.assertEqual(30, len(tree.nodes))
        self.check_ids(tree.to_dict())

    def test_build_from_other_category(self):
        with open(FOODS_PATH, "r", encoding="utf-8") as f:
            grammar = Grammar.from_document(json.load(f)).abstract
        tree = DerivationTree.from_grammar(grammar, "Kind")
        self.check_category(tree.root, "Kind", 4)

    def test_build_derivation_tree(self):
        with open(FOODS_PATH, "r", encoding="utf-8") as f:
            grammar = Grammar.from_document(json.load(f)).abstract
        tree = build_derivation_tree(grammar)
        self.check_category(tree.root, "Comment", 1)
        self.assertEqual(30, len(tree.nodes))
        self.check_category(build_derivation_tree(grammar, "Quality").root, "Quality", 7)

    def test_long_category_chain(self):
        """
        C0 -> f0(C1), C1 -> f1(C2), ... C99 -> end: one category and one function per level.
        """
        funs = {f"f{i}": {"args": [f"C{i + 1}"], "cat": f"C{i}"} for i in range(99)}
        funs["end"] = {"args": [], "cat": "C99"}
        tree = build_derivation_tree(abstract_grammar("C0", funs))
        self.assertEqual(200, tree.depth())
        self.assertEqual(200, len(tree.nodes))
        self.assertEqual(200, len(list(tree.walk())))
        self.check_ids(tree.to_dict())
        self.assertIsNotNone(tree.snapshot())

    def test_node_lookup(self):
        grammar = abstract_grammar("S", {"Run": {"args": [], "cat": "S"}})
        tree = DerivationTree.from_grammar(grammar)
        self.assertIs(tree.root, tree.node("dn_0"))
        self.assertIs(tree.root.children[0], tree.node("dn_1"))
        with self.assertRaises(UnknownNode):
            tree.node("dn_2")

    def test_export(self):
        grammar = abstract_grammar("S", {"Run": {"args": [], "cat": "S"}})
        tree = DerivationTree.from_grammar(grammar)

        self.assertEqual({
            "id": "dn_0", "kind": "category", "display_name": "S", "has_children": True,
            "children": [{"id": "dn_1", "kind": "function", "display_name": "Run",
                          "has_children": False, "children": []}],
        }, tree.to_dict())
        verbose = tree.to_dict(verbose=True)
        self.assertEqual("S", verbose["category"])
        self.assertIsNone(verbose["original_display_name"])
        self.assertEqual(tree.to_dict(), json.loads(tree.to_json()))

        snapshot = tree.snapshot()
        self.assertEqual("S", snapshot.display_name)
        self.assertTrue(snapshot.has_children)
        self.assertEqual("Run", snapshot.children[0].display_name)
        with self.assertRaises(dataclasses.FrozenInstanceError):
            snapshot.display_name = "T"

    def test_empty_tree(self):
        tree = DerivationTree()
        self.assertEqual({}, tree.to_dict())
        self.assertIsNone(tree.snapshot())
        self.assertEqual(0, tree.depth())
        self.assertEqual([], list(tree.walk()))

if __name__ == '__main__':
    unittest.main()
