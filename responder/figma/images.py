"""
Region Resolver

Turns a comment into a screenshot: finds the element the comment is pinned
to, walks up the document tree to the closest frame-like container and
exports that container as a PNG.

Every "can't" along the way (no pin, no container, export failed) yields an
empty or partial RegionSnapshot instead of an error.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import httpx

from ..common.schemas import Comment
from .client import FigmaClient, FigmaAPIError

logger = logging.getLogger("responder.figma.images")

# Node types that make a sensible screenshot boundary
FRAME_TYPES = ("FRAME", "COMPONENT", "COMPONENT_SET", "GROUP")

EXPORT_SCALE = 2


@dataclass
class RegionSnapshot:
    """Result of resolving a comment to an exported region"""
    image_base64: Optional[str] = None
    element_id: Optional[str] = None
    region_id: Optional[str] = None

    @property
    def has_image(self) -> bool:
        return self.image_base64 is not None


def find_path_to_node(
    root: Dict[str, Any],
    target_id: str,
) -> Optional[List[Dict[str, Any]]]:
    """
    Path of nodes from root down to the node with target_id (inclusive).

    Returns None if the node is not in the tree.
    """
    if root.get("id") == target_id:
        return [root]
    for child in root.get("children") or []:
        sub_path = find_path_to_node(child, target_id)
        if sub_path is not None:
            return [root] + sub_path
    return None


def find_region_id(document: Dict[str, Any], node_id: str) -> Optional[str]:
    """
    Pick the node to export for an element.

    The path runs DOCUMENT > PAGE > top-level frame > ... > element. The closest
    frame-like ancestor (or the element itself) wins; failing that, the
    top-level frame is used. Paths shorter than three nodes have no region.
    """
    path = find_path_to_node(document, node_id)
    if not path or len(path) < 3:
        return None

    for depth in range(len(path) - 1, 1, -1):
        node = path[depth]
        if node.get("type") in FRAME_TYPES:
            logger.debug("Region for %s: %s (%s) at depth %d", node_id, node.get("name"), node.get("id"), depth)
            return node["id"]

    logger.debug("No intermediate frame for %s, using top-level frame", node_id)
    return path[2]["id"]


class RegionResolver:
    """
    Resolves the screenshot for a comment.

    Pipeline:
    1. Look up the comment and its pinned node (client_meta.node_id)
    2. Fetch the file structure and choose the region to export
    3. Render the region as PNG (2x) and download it as base64
    """

    def __init__(self, figma: FigmaClient):
        self._figma = figma

    async def resolve(
        self,
        file_key: str,
        comment_id: str,
        comments: Optional[Iterable[Comment]] = None,
    ) -> RegionSnapshot:
        """
        Args:
            file_key: Figma file key
            comment_id: Comment whose pin decides the region
            comments: Already-fetched comments of the file; fetched when omitted

        Returns:
            RegionSnapshot, possibly without image/region
        """
        if comments is None:
            comment = await self._figma.get_comment(file_key, comment_id)
        else:
            comment = next((c for c in comments if c.id == comment_id), None)

        if comment is None:
            logger.warning("Comment %s not found in %s", comment_id, file_key)
            return RegionSnapshot()

        node_id = comment.node_id
        if not node_id:
            logger.info("Comment %s is not pinned to an element, no screenshot", comment_id)
            return RegionSnapshot()

        file_data = await self._figma.get_file(file_key)
        region_id = find_region_id(file_data.get("document") or {}, node_id)
        if not region_id:
            logger.warning("No exportable region for node %s in %s", node_id, file_key)
            return RegionSnapshot(element_id=node_id)

        try:
            images = await self._figma.get_images(file_key, [region_id], format="png", scale=EXPORT_SCALE)
            image_url = images.get(region_id)
            if not image_url:
                logger.warning("No image URL returned for region %s", region_id)
                return RegionSnapshot(element_id=node_id, region_id=region_id)

            image_base64 = await self._figma.download_image(image_url)
        except (FigmaAPIError, httpx.HTTPError) as e:
            logger.warning("Failed to export region %s: %s", region_id, e)
            return RegionSnapshot(element_id=node_id, region_id=region_id)

        return RegionSnapshot(image_base64=image_base64, element_id=node_id, region_id=region_id)
