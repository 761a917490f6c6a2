
class GlobalMessages:
    # Auth Messages
    INVALID_CREDENTIALS = "Could not validate credentials"

    # Request Messages
    INVALID_REQUEST = "Invalid request data."
    CONCURRENT_MODIFICATION = "The discussion was modified by another request. Please reload and try again."

    # Subject Messages
    SUBJECT_NOT_FOUND = "Subject not found."

    # Discussion Messages
    DISCUSSION_NOT_FOUND = "Discussion not found."
    DISCUSSION_DELETED = "Discussion successfully deleted."
    DISCUSSION_TITLE_CONTENT_REQUIRED = "Title and content are required for a discussion."
    DISCUSSION_FIELD_EMPTY = "Discussion title and content cannot be empty."
    NOT_AUTHORIZED_CREATE_DISCUSSION = "You are not authorized to create discussions for this subject."
    NOT_AUTHORIZED_VIEW_DISCUSSIONS = "You are not authorized to view discussions for this subject."
    NOT_AUTHORIZED_VIEW_DISCUSSION = "You are not authorized to view this discussion."
    NOT_AUTHORIZED_UPDATE_DISCUSSION = "You are not authorized to update this discussion."
    NOT_AUTHORIZED_DELETE_DISCUSSION = "You are not authorized to delete this discussion."

    # Comment Messages
    COMMENT_NOT_FOUND = "Comment not found in this discussion."
    COMMENT_CONTENT_REQUIRED = "Comment content cannot be empty."
    NOT_AUTHORIZED_ADD_COMMENT = "You are not authorized to comment on this discussion."
    NOT_AUTHORIZED_UPDATE_COMMENT = "You are not authorized to update this comment."
    NOT_AUTHORIZED_DELETE_COMMENT = "You are not authorized to delete this comment."
    NOT_AUTHORIZED_HIDE_COMMENT = "Only administrators can hide or unhide comments."

    # Reply Messages
    REPLY_NOT_FOUND = "Reply not found in this comment."
    PARENT_REPLY_NOT_FOUND = "Parent reply not found in this comment."
    REPLY_CONTENT_REQUIRED = "Reply content cannot be empty."
    REPLY_TOO_DEEP = "Replies cannot be nested more than {max_depth} levels deep."
    NOT_AUTHORIZED_ADD_REPLY = "You are not authorized to reply to this comment."
    NOT_AUTHORIZED_UPDATE_REPLY = "You are not authorized to update this reply."
    NOT_AUTHORIZED_DELETE_REPLY = "You are not authorized to delete this reply."
    NOT_AUTHORIZED_HIDE_REPLY = "Only administrators can hide or unhide replies."

    # Moderation Messages
    NOT_AUTHORIZED_VIEW_MODERATION_LOG = "Only administrators can view the moderation log."
