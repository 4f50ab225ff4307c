"""
This Module contains helper functions for the CLI tool and the GrammarSession class.
The functions acquire a raw grammar document, from a local file or from a URL,
and decode it into a parsed JSON object.
"""

import json
import os
from typing import Any, Optional, Union

import httpx

from treevis.GrammarErrors import MalformedGrammar

DEFAULT_TIMEOUT = 30.0

def is_url(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")

def parse_grammar_text(text: Union[str, bytes]) -> Any:
    """
    Decode the text of a grammar document. Bytes are decoded as UTF-8.

    Raises:
        MalformedGrammar: If the text is not UTF-8, not valid JSON, or nested too deeply
    """
    try:
        if isinstance(text, bytes):
            text = text.decode("utf-8-sig")
        return json.loads(text)
    except UnicodeDecodeError as e:
        raise MalformedGrammar(f"Grammar document is not UTF-8 text: {e}") from e
    except json.JSONDecodeError as e:
        raise MalformedGrammar(f"Grammar document is not valid JSON: {e}") from e
    except RecursionError as e:
        raise MalformedGrammar("Grammar document is nested too deeply.") from e

def read_grammar_document(path: str) -> Any:
    """
    Read and decode a grammar document from a file.

    Args:
        path (str): Path to the JSON file

    Returns:
        Any: The parsed JSON object

    Raises:
        FileNotFoundError: If the path does not exist or is not a file
        MalformedGrammar: If the file is not valid JSON
    """
    abs_path = os.path.abspath(path)
    if not os.path.isfile(abs_path):
        raise FileNotFoundError(f"The grammar file '{abs_path}' does not exist or is not a file.")
    with open(abs_path, "rb") as f:
        return parse_grammar_text(f.read())

def fetch_grammar_document(url: str, client: Optional[httpx.Client] = None,
                           timeout: float = DEFAULT_TIMEOUT) -> Any:
    """
    Fetch and decode a grammar document from a URL.

    Args:
        url (str): http(s) URL of the JSON document
        client (Optional[httpx.Client]): Client to use, a temporary one is created if None
        timeout (float): Request timeout in seconds for the temporary client

    Returns:
        Any: The parsed JSON object

    Raises:
        httpx.HTTPStatusError: If the server answers with an error status
        httpx.RequestError: If the request fails
        MalformedGrammar: If the body is not valid JSON
    """
    if client is None:
        with httpx.Client(timeout=httpx.Timeout(timeout), follow_redirects=True) as own_client:
            return fetch_grammar_document(url, client=own_client)

    response = client.get(url)
    response.raise_for_status()
    return parse_grammar_text(response.content)

def load_grammar_source(source: str, timeout: float = DEFAULT_TIMEOUT) -> Any:
    """Read a grammar document from a URL or a file path"""
    if is_url(source):
        return fetch_grammar_document(source, timeout=timeout)
    return read_grammar_document(source)
