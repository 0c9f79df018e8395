"""
Config Pruner
Removes recorded node entries (DMA, NATSServer, ...) from the agent's XML configuration files

Each call loads the document fresh, detaches every element matching the selector
(together with its subtree) and writes the whole document back. Load and parse
failures propagate before anything is written.
"""
from __future__ import annotations
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from .errors import SelectorError
from .schemas import AdminConfig, ElementSelector

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass
class ConfigurationDocument:
    """An XML tree plus the namespace prefixes declared in its source file"""
    tree: ET.ElementTree
    source: Path
    prefixes: Dict[str, str] = field(default_factory=dict)

    @property
    def root(self) -> ET.Element:
        return self.tree.getroot()


def load_document(path: PathLike) -> ConfigurationDocument:
    """
    Parse an XML file, keeping comments and processing instructions

    Only content inside the root element survives a later save: comments,
    processing instructions and a DOCTYPE in the prolog are not kept.

    Raises:
        FileNotFoundError: path does not exist
        xml.etree.ElementTree.ParseError: the file is not well-formed
    """
    source = Path(path)
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True, insert_pis=True))
    tree = ET.parse(source, parser=parser)

    prefixes: Dict[str, str] = {}
    for _event, (prefix, uri) in ET.iterparse(source, events=("start-ns",)):
        prefixes.setdefault(prefix, uri)
    return ConfigurationDocument(tree=tree, source=source, prefixes=prefixes)


def _parent_map(root: ET.Element) -> Dict[ET.Element, ET.Element]:
    return {child: parent for parent in root.iter() for child in parent}


def find_matches(document: ConfigurationDocument, selector: ElementSelector) -> List[ET.Element]:
    """
    Evaluate the selector once against the intact tree

    Matches lying inside another match's subtree are left out; they go away
    with their ancestor. Document order is kept.
    """
    try:
        matches = document.root.findall(selector.query, selector.namespaces)
    except SyntaxError as e:
        raise SelectorError(f"Cannot evaluate selector {selector.path!r}: {e}") from e
    # "." and ".." steps can select the root, which has no parent to detach from
    if any(el is document.root for el in matches):
        raise SelectorError(f"Selector {selector.path!r} matches the document root")

    parents = _parent_map(document.root)
    matched = {id(el) for el in matches}
    top_level = []
    for element in matches:
        ancestor = parents.get(element)
        while ancestor is not None and id(ancestor) not in matched:
            ancestor = parents.get(ancestor)
        if ancestor is None:
            top_level.append(element)
    return top_level


def _detach(parent: ET.Element, element: ET.Element) -> None:
    siblings = list(parent)
    index = next(i for i, child in enumerate(siblings) if child is element)
    previous = siblings[index - 1] if index > 0 else None
    was_last = index == len(siblings) - 1
    tail = element.tail
    parent.remove(element)
    if not tail:
        return

    if tail.strip():
        # mixed content belongs to the parent, keep it
        if previous is not None:
            previous.tail = (previous.tail or "") + tail
        else:
            parent.text = (parent.text or "") + tail
    elif was_last:
        # keep the closing tag's indentation
        if previous is not None:
            previous.tail = tail
        else:
            parent.text = tail


def remove_matching(document: ConfigurationDocument, selector: ElementSelector) -> int:
    """Detach every match from the in-memory tree; returns the number of removed subtrees"""
    matches = find_matches(document, selector)
    if not matches:
        return 0
    parents = _parent_map(document.root)
    for element in matches:
        _detach(parents[element], element)
    return len(matches)


def _all_qualified(root: ET.Element, uri: str) -> bool:
    prefix = "{" + uri + "}"
    return all(el.tag.startswith(prefix) for el in root.iter() if isinstance(el.tag, str))


def save_document(document: ConfigurationDocument, path: Optional[PathLike] = None) -> Path:
    """Serialize the whole document (UTF-8, XML declaration) to path or back to its source"""
    target = Path(path) if path is not None else document.source
    for prefix, uri in document.prefixes.items():
        if prefix == "" and not _all_qualified(document.root, uri):
            # unqualified elements must not move into the default namespace;
            # also replaces a "" mapping registered by an earlier document
            prefix = "default"
        try:
            ET.register_namespace(prefix, uri)
        except ValueError:
            # ns0-style prefixes are reserved by ElementTree; it regenerates them
            logger.debug("Prefix %r left to ElementTree", prefix)
    document.tree.write(target, encoding="utf-8", xml_declaration=True)
    return target


def prune_elements(path: PathLike, selector: ElementSelector, target_path: Optional[PathLike] = None) -> int:
    """
    Remove all elements matching selector from the XML file at path

    Args:
        path: document to load
        selector: elements to remove (with their subtrees)
        target_path: where to write the result; defaults to path

    Returns:
        Number of removed subtrees; 0 means the document was written back unchanged

    Raises:
        FileNotFoundError / PermissionError: path cannot be read or target written
        xml.etree.ElementTree.ParseError: malformed document, nothing written
        SelectorError: selector uses an unbound prefix, nothing written
    """
    document = load_document(path)
    removed = remove_matching(document, selector)
    target = save_document(document, target_path)
    logger.info("Removed %d element(s) matching %s from %s", removed, selector.path, target)
    return removed


def dms_selector(config: AdminConfig) -> ElementSelector:
    return ElementSelector(path=config.dms_selector, namespaces={"dms": config.dms_namespace})


def slcloud_selector(config: AdminConfig) -> ElementSelector:
    return ElementSelector(path=config.slcloud_selector)


def prune_dms(config: AdminConfig) -> int:
    """Remove recorded DMA entries from DMS.xml"""
    return prune_elements(config.dms_xml_path, dms_selector(config))


def prune_slcloud(config: AdminConfig) -> int:
    """Remove NATSServer entries from SLCloud.xml"""
    return prune_elements(config.slcloud_xml_path, slcloud_selector(config))
