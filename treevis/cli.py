# cli.py

import argparse
import os
import sys
from datetime import datetime

import httpx

from treevis.GrammarErrors import GrammarError
from treevis.GrammarSession import GrammarSession
from treevis.utils import DEFAULT_TIMEOUT, is_url

def get_grammar_source(arg_value: str, default_path: str) -> str:
    """
    Returns the grammar source to load.
    - URLs are returned unchanged.
    - If 'arg_value' is a path, validates and returns its absolute form.
    - Otherwise uses 'default_path', validates it, and returns it.
    - If the path does not exist or is not a file, prints error and exits.
    """
    if arg_value is not None and is_url(arg_value):
        return arg_value
    if arg_value is None:
        if not os.path.isfile(default_path):
            print(f"Error: No grammar provided and default '{default_path}' does not exist or is not a file.")
            sys.exit(1)
        return os.path.abspath(default_path)
    abs_path = os.path.abspath(arg_value)
    if not os.path.isfile(abs_path):
        print(f"Error: The grammar '{abs_path}' does not exist or is not a file.")
        sys.exit(1)
    return abs_path

def main():
    parser = argparse.ArgumentParser(description="Explore the derivation tree of a GF grammar exported as JSON.")
    parser.add_argument(
        "grammar",
        type=str,
        nargs='?',
        help="Path or http(s) URL of the JSON grammar"
    )
    parser.add_argument(
        "-l", "--language",
        type=str,
        default=None,
        help="Concrete grammar id to start in (abstract mode otherwise)"
    )
    parser.add_argument(
        "-c", "--category",
        type=str,
        default=None,
        help="Category to build the tree from (defaults to the start category)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Include node details in JSON output and dump the initial tree to a file"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="Timeout in seconds when fetching a grammar from a URL"
    )
    args = parser.parse_args()

    source = get_grammar_source(args.grammar, default_path="Samples/Foods/Foods.json")

    session = GrammarSession()
    try:
        session.load_source(source, category=args.category, language=args.language, timeout=args.timeout)
    except (GrammarError, OSError, httpx.HTTPError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.verbose:
        now_str = datetime.now().strftime("%Y%m%d_%H%M%S")
        out_file = f"derivationTree_{now_str}.json"
        with open(out_file, "w", encoding="utf-8") as f:
            f.write(session.get_current_tree_json(verbose=True))
        print(f"Initial derivation tree written to {out_file}")

    interactive_explorer_repl(session, args.verbose, args.timeout)

def print_help():
    print("\nOptions:")
    print("  (p)rint                 show the tree")
    print("  (a)lternatives <id>     list the alternatives of a category node")
    print("  (s)elect <id> <n|name>  relabel a node with an alternative (number or name)")
    print("  (r)eset <id>            restore the original label of a node")
    print("  (ra)                    reset all nodes")
    print("  (l)anguage [id]         switch to a concrete grammar, no id for abstract mode")
    print("  (j)son                  dump the tree as JSON")
    print("  (o)pen <path|url>       load another grammar")
    print("  (h)elp                  re-show commands")
    print("  (q)uit")

def interactive_explorer_repl(session: GrammarSession, verbose: bool = False, timeout: float = DEFAULT_TIMEOUT):
    """
    A small REPL around the GrammarSession. Nodes are addressed by the ids shown
    in the printed tree.
    """
    print("\n=== Welcome to the interactive derivation tree explorer ===")
    print("Pick a category node, list its alternatives and select one. Reset brings the old label back.")
    print_help()
    print()
    print(session.render_text())

    while True:
        mode = session.language or "abstract"
        line = input(f"\n[{mode}] Enter command: ").strip()
        if not line:
            continue
        cmd, *rest = line.split(maxsplit=2)
        cmd = cmd.lower()

        try:
            if cmd in ("p", "print"):
                print(session.render_text())

            elif cmd in ("a", "alternatives"):
                if not rest:
                    print("Usage: a <node id>")
                    continue
                alternatives = session.list_alternatives(rest[0])
                if not alternatives:
                    print("No alternatives for this node.")
                for i, alt in enumerate(alternatives, 1):
                    print(f"  {i}: {alt}")

            elif cmd in ("s", "select"):
                if len(rest) < 2:
                    print("Usage: s <node id> <alt index or function name>")
                    continue
                node_id, choice = rest
                if choice.isdigit():
                    alternatives = session.list_alternatives(node_id)
                    alt_idx = int(choice)
                    if alt_idx < 1 or alt_idx > len(alternatives):
                        print(f"Invalid alt index {alt_idx}, there are {len(alternatives)} alternatives.")
                        continue
                    choice = alternatives[alt_idx - 1]
                session.select(node_id, choice)
                print(session.render_text())

            elif cmd in ("r", "reset"):
                if not rest:
                    print("Usage: r <node id>")
                    continue
                session.reset(rest[0])
                print(session.render_text())

            elif cmd == "ra":
                session.reset_all()
                print(session.render_text())

            elif cmd in ("l", "language"):
                if rest:
                    session.set_language(rest[0])
                else:
                    session.set_language(None)
                    print(f"Available concrete grammars: {', '.join(session.concrete_ids()) or '(none)'}")

            elif cmd in ("j", "json"):
                print(session.get_current_tree_json(verbose=verbose))

            elif cmd in ("o", "open"):
                if not rest:
                    print("Usage: o <path or url>")
                    continue
                session.load_source(rest[0], timeout=timeout)
                print(session.render_text())

            elif cmd in ("h", "help"):
                print_help()

            elif cmd in ("q", "quit"):
                print("Exiting REPL. Goodbye.")
                break

            else:
                print("Unknown command. Type 'h' for help or 'q' to quit.")

        except (GrammarError, OSError, httpx.HTTPError) as e:
            print(f"Error: {e}")

if __name__ == "__main__":
    main()
