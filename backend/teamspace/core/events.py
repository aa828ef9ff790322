# WebSocket frame type definitions for /ws/messages/{channel_id}.
# Every frame is {"type": <one of these>, "payload": ...}.

# Inbound operations (client -> server)
CLIENT_MESSAGE = "client_message"
CREATE_MESSAGE = "create_message"  # accepted alias of client_message
GET_MESSAGE_HISTORY = "get_message_history"
UPDATE_MESSAGE = "update_message"
DELETE_MESSAGE = "delete_message"
ADD_REACTION = "add_reaction"
REMOVE_REACTION = "remove_reaction"

# Outbound events (server -> client)
CHANNEL_JOINED = "channel_joined"
MESSAGE_CREATED = "message_created"  # to the sender
NEW_MESSAGE = "new_message"  # to the rest of the channel
MESSAGE_HISTORY = "message_history"
MESSAGE_UPDATED = "message_updated"
MESSAGE_DELETED = "message_deleted"
REACTION_ADDED = "reaction_added"
REACTION_REMOVED = "reaction_removed"
ERROR = "error"

# Message types
MESSAGE_TYPE_TEXT = "text"
MESSAGE_TYPES = (MESSAGE_TYPE_TEXT, "image", "file", "voice")
