# src/modules/discussions/discussion_tree.py
"""
In-memory comment/reply tree of a discussion.

A discussion stores its comments as one JSON document. The service loads it
into these node models, mutates it with the functions below, and writes the
whole document back in a single save. Searches walk the owned ``replies``
lists with an explicit stack. Loading, saving and rendering go through
pydantic, which nests one level per reply, so reply chains are capped at
``MAX_REPLY_DEPTH``.
"""

from datetime import datetime
from typing import Iterable, Iterator, List, NamedTuple, Optional, Set, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, model_validator

from src.models.models import utcnow

# Deepest reply allowed under a comment (direct replies are depth 1). Must stay
# below the nesting pydantic can validate and serialize.
MAX_REPLY_DEPTH = 100


class TreeNode(BaseModel):
    id: UUID
    author_id: UUID
    content: str
    is_edited: bool = False
    is_hidden: bool = False
    hidden_by_id: Optional[UUID] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def check_hidden_by(self):
        if self.is_hidden != (self.hidden_by_id is not None):
            raise ValueError("hidden_by_id must be set if and only if the node is hidden")
        return self


class ReplyNode(TreeNode):
    reply_to_id: Optional[UUID] = None
    replies: List["ReplyNode"] = Field(default_factory=list)


class CommentNode(TreeNode):
    replies: List[ReplyNode] = Field(default_factory=list)


ReplyNode.model_rebuild()

Node = Union[CommentNode, ReplyNode]


class ReplyLocation(NamedTuple):
    """A located reply plus what is needed to mutate or splice it."""
    node: ReplyNode
    container: List[ReplyNode]
    index: int
    parent: Optional[ReplyNode]  # None when attached directly to the comment
    depth: int  # 1 for direct replies to the comment


# --- Serialization ---

def load_comments(raw: Optional[Iterable[dict]]) -> List[CommentNode]:
    return [CommentNode.model_validate(item) for item in raw or []]


def dump_comments(comments: List[CommentNode]) -> List[dict]:
    return [comment.model_dump(mode="json") for comment in comments]


# --- Traversal ---

def iter_replies(comment: CommentNode) -> Iterator[ReplyNode]:
    """Pre-order walk over every reply under a comment."""
    stack = list(reversed(comment.replies))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.replies))


def iter_nodes(comments: List[CommentNode]) -> Iterator[Node]:
    for comment in comments:
        yield comment
        yield from iter_replies(comment)


def collect_node_ids(comments: List[CommentNode]) -> Set[UUID]:
    return {node.id for node in iter_nodes(comments)}


def referenced_user_ids(comments: List[CommentNode]) -> Set[UUID]:
    """Every user id the tree points at (authors, addressees, moderators)."""
    ids: Set[UUID] = set()
    for node in iter_nodes(comments):
        ids.add(node.author_id)
        if node.hidden_by_id:
            ids.add(node.hidden_by_id)
        if isinstance(node, ReplyNode) and node.reply_to_id:
            ids.add(node.reply_to_id)
    return ids


def count_subtree(node: Node) -> int:
    """Number of nodes in the subtree rooted at ``node``, itself included."""
    total = 0
    stack = [node]
    while stack:
        current = stack.pop()
        total += 1
        stack.extend(current.replies)
    return total


def find_comment(comments: List[CommentNode], comment_id: UUID) -> Optional[CommentNode]:
    for comment in comments:
        if comment.id == comment_id:
            return comment
    return None


def find_reply(comment: CommentNode, reply_id: UUID) -> Optional[ReplyLocation]:
    """
    Depth-first, first-match search for a reply anywhere under ``comment``.

    Each sibling list is scanned before descending; children of earlier
    siblings are searched before those of later ones. Returns None when the
    id is not in the tree.
    """
    pending = [(comment.replies, None, 1)]
    while pending:
        container, parent, depth = pending.pop()
        for index, node in enumerate(container):
            if node.id == reply_id:
                return ReplyLocation(node, container, index, parent, depth)
        for node in reversed(container):
            if node.replies:
                pending.append((node.replies, node, depth + 1))
    return None


# --- Mutation ---

def new_node_id(existing: Set[UUID]) -> UUID:
    node_id = uuid4()
    while node_id in existing:
        node_id = uuid4()
    existing.add(node_id)
    return node_id


def add_comment(comments: List[CommentNode], author_id: UUID, content: str) -> CommentNode:
    comment = CommentNode(
        id=new_node_id(collect_node_ids(comments)),
        author_id=author_id,
        content=content,
    )
    comments.append(comment)
    return comment


def add_reply(
    comments: List[CommentNode],
    comment: CommentNode,
    author_id: UUID,
    content: str,
    reply_to_id: Optional[UUID] = None,
    parent: Optional[ReplyNode] = None,
) -> ReplyNode:
    """
    Attach a new reply under ``parent``, or directly under ``comment`` when
    no parent reply is given.
    """
    reply = ReplyNode(
        id=new_node_id(collect_node_ids(comments)),
        author_id=author_id,
        content=content,
        reply_to_id=reply_to_id,
    )
    container = parent.replies if parent is not None else comment.replies
    container.append(reply)
    return reply


def remove_comment(comments: List[CommentNode], comment_id: UUID) -> Optional[CommentNode]:
    """Remove a comment together with its reply subtree."""
    for index, comment in enumerate(comments):
        if comment.id == comment_id:
            return comments.pop(index)
    return None


def remove_reply(comment: CommentNode, reply_id: UUID) -> Optional[ReplyNode]:
    """Splice a reply and all its descendants out of the tree."""
    location = find_reply(comment, reply_id)
    if location is None:
        return None
    return location.container.pop(location.index)


def edit_content(node: Node, content: str, now: Optional[datetime] = None) -> bool:
    """
    Replace the node's text. The edited flag only ever goes from False to
    True; a no-op edit leaves the node untouched.
    """
    if content == node.content:
        return False
    node.content = content
    node.is_edited = True
    node.updated_at = now or utcnow()
    return True


def toggle_hidden(node: Node, moderator_id: UUID, now: Optional[datetime] = None) -> bool:
    """Flip the hidden state; returns the new value of ``is_hidden``."""
    if node.is_hidden:
        node.is_hidden = False
        node.hidden_by_id = None
    else:
        node.is_hidden = True
        node.hidden_by_id = moderator_id
    node.updated_at = now or utcnow()
    return node.is_hidden
