"""Centralized message constants for error messages, validation, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Discord ID Validation Errors
    INVALID_SNOWFLAKE = "Discord snowflake ID must be positive"
    SNOWFLAKE_TOO_LARGE = "Discord snowflake ID exceeds maximum value (2^64)"

    # Track Validation Errors
    EMPTY_TRACK_ID = "Track ID cannot be empty"

    # Voting Validation Errors
    INVALID_THRESHOLD = "Threshold must be at least 1"

    # Settings Validation Errors
    INVALID_DATABASE_URL = "Database URL must start with sqlite://"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # Authentication/Security Errors
    DISCORD_TOKEN_REQUIRED = "DISCORD_TOKEN environment variable is required"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."
    CONTAINER_NOT_FOUND = "Container not found on bot instance"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Database Lifecycle
    DATABASE_INITIALIZED = "Database initialized at %s"
    DATABASE_CLOSED = "Database manager closed"
    TABLE_MIGRATED = "Migrated table %s: added column %s"

    # Cleanup Operations
    CLEANUP_STARTED = "Cleanup job started"
    CLEANUP_STOPPED = "Cleanup job stopped"
    CLEANUP_ALREADY_RUNNING = "Cleanup job is already running"
    CLEANUP_CYCLE_RUNNING = "Running cleanup cycle"
    CLEANUP_COMPLETED = "Cleanup completed: removed %s idle sessions"
    CLEANUP_SESSIONS_FAILED = "Failed to cleanup idle sessions: %r"

    # Cache Operations
    CACHE_HIT_URL = "Cache hit for URL: %s"
    CACHE_EXPIRED_CLEANED = "Cleaned %d expired cache entries"

    # Voice Connection
    GUILD_NOT_FOUND = "Guild %s not found"
    CHANNEL_NOT_VOICE = "Channel %s is not a voice channel"
    VOICE_CONNECTED = "Connected to voice channel %s in %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_MOVED = "Moved to voice channel %s"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_MOVE_TIMEOUT = "Timeout moving to channel %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_CLIENT_ERROR = "Client error connecting: %r"
    VOICE_STALE_CLEANUP = "Found stale voice client in guild %s, cleaning up"
    VOICE_NOT_CONNECTED = "Not connected to voice in guild %s"
    VOICE_SELF_DEAFEN_FAILED = "Failed to self-deafen in guild %s: %r"

    # Audio Backend
    PLAYBACK_STARTED = "Started playing '%s' in guild %s"
    PLAYBACK_RESTARTED = "Restarted '%s' at %.1fs in guild %s (filter: %s)"
    PLAYBACK_STOPPED = "Stopped playback in guild %s"
    PLAYBACK_PAUSED = "Paused playback in guild %s"
    PLAYBACK_RESUMED = "Resumed playback in guild %s"
    PLAYBACK_ERROR = "Playback error in guild %s: %s"
    PLAYBACK_FAILED_START = "Failed to start playback: %s"
    PLAYBACK_NO_CALLBACK = "No %s callback set for guild %s"
    PLAYBACK_CALLBACK_ERROR = "Error in %s callback for guild %s"
    TRACK_ENDED = "Track ended in guild %s (reason: %s, error: %s)"

    # Session Registry
    SESSION_CREATED = "Created session for guild %s in voice channel %s"
    SESSION_REJOINED = "Rejoined voice channel %s for idle session in guild %s"
    SESSION_REMOVED = "Removed session for guild %s"

    # Orchestration
    TRACK_STARTED = "Started track '%s' in guild %s (requested by %s)"
    TRACK_SKIPPED = "Skipped '%s' in guild %s"
    TRACK_REWOUND = "Rewound to '%s' in guild %s"
    TRACK_END_IGNORED = "Ignoring track end in guild %s (reason: %s)"
    TRACK_END_STALE = "Ignoring stale track end for %s in guild %s (now playing %s)"
    NEXT_TRACK_DECISION = "Next-track decision for guild %s: %s"
    SESSION_IDLE = "Guild %s went idle after '%s'"
    SESSION_TORN_DOWN = "Tore down session for guild %s (%s)"
    AUTOPLAY_NO_RELATED = "Autoplay found no related track for '%s' in guild %s"
    AUTOPLAY_LOOKUP_FAILED = "Autoplay lookup failed for '%s' in guild %s"
    RESOLVE_TIMEOUT = "Resolving '%s' timed out after %ss"
    RESOLVE_FAILED = "Resolving '%s' failed"
    SEARCH_RESULTS = "Search '%s' in guild %s returned %s result(s)"
    STREAM_RESOLVE_TIMEOUT = "Resolving a stream for '%s' timed out after %ss"
    STREAM_RESOLVE_FAILED = "No stream for '%s' in guild %s, going idle"
    BACKEND_STATE_MISMATCH = "Backend could not %s playback in guild %s"
    TRACK_EXCEPTION = "Track exception in guild %s: %s"
    BACKEND_DISCONNECTED = "Voice connection lost in guild %s"
    VOICE_CHANNEL_CHANGED = "Bot moved from %s to %s in guild %s"
    VOTE_RECORDED = "Skip vote in guild %s: %s/%s"
    EVENT_HANDLER_FAILED = "Error handling %s for guild %s"

    # Status Messages
    STATUS_STALE_DROPPED = "Dropping stale status render v%s for guild %s (published v%s)"
    STATUS_EDIT_FAILED = "Status message edit failed in guild %s, sending a new one: %s"
    STATUS_SEND_FAILED = "Failed to send status message in guild %s"
    STATUS_POST_FAILED = "Failed to post status message to channel %s: %s"
    STATUS_DELETE_FAILED = "Failed to delete status message %s: %s"
    NOTICE_SEND_FAILED = "Failed to send notice to channel %s: %s"

    # Guild Config / Favorites
    GUILD_CONFIG_UPDATED = "Updated config for guild %s"
    FAVORITE_ADDED = "User %s saved favorite '%s'"
    FAVORITE_REMOVED = "User %s removed favorite %s"

    # yt-dlp
    YTDLP_POT_CONFIGURED = "yt-dlp PO token provider configured at %s"
    YTDLP_NO_URL_IN_INFO_DICT = "No URL found in yt-dlp info dict"
    YTDLP_NO_STREAM_URL = "No stream URL found for %s"
    YTDLP_FAILED_INFO_TO_TRACK = "Failed to convert yt-dlp info to track"
    YTDLP_FAILED_EXTRACT_INFO = "Failed to extract info for %s"
    YTDLP_FAILED_SEARCH = "Search failed for '%s'"
    YTDLP_FAILED_EXTRACT_PLAYLIST = "Failed to extract playlist %s"

    # Bot Lifecycle
    BOT_STARTING = "Starting guild jukebox ({environment})"
    BOT_STARTING_RUN = "Connecting to Discord"
    BOT_STOPPED = "Bot stopped"
    BOT_KEYBOARD_INTERRUPT = "Interrupted, shutting down"
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_SETUP = "Running setup hook"
    BOT_SETUP_COMPLETE = "Setup complete"
    BOT_CONTAINER_INITIALIZED = "Container initialized"
    BOT_CONTAINER_INIT_FAILED = "Container initialization failed: %s"
    BOT_COG_LOADED = "Loaded cog %s"
    BOT_COG_LOAD_FAILED = "Failed to load cog %s: %s"
    BOT_COGS_LOADED_SUMMARY = "Cogs loaded: %d ok, %d failed"
    BOT_SLASH_COMMAND_ERROR = "Error in slash command /%s: %r"
    BOT_SLASH_COMMAND_REJECTED = "Slash command /%s rejected: %s"
    BOT_ERROR_MESSAGE_SEND_FAILED = "Failed to send error message to user"
    BOT_SYNCED_GUILD = "Synced %d commands to guild %s"
    BOT_SYNC_GUILD_FAILED = "Failed to sync commands to guild %s: %s"
    BOT_SYNCED_GLOBAL = "Synced %d global commands"
    BOT_SYNC_GLOBAL_FAILED = "Failed to sync global commands: %s"
    BOT_SYNC_ON_STARTUP_FAILED = "Command sync on startup failed: %s"
    BOT_READY = "Logged in as %s (%s)"
    BOT_CONNECTED_GUILDS = "Connected to %d guilds"
    BOT_CLEANUP_START_FAILED = "Failed to start cleanup job: %s"
    BOT_SHUTTING_DOWN = "Shutting down"
    BOT_CONTAINER_SHUTDOWN = "Container shut down"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error shutting down container: %s"
    BOT_SHUTDOWN_COMPLETE = "Shutdown complete"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown timed out after %ss"

    # Events
    EVENT_GUILD_JOINED = "Joined guild %s (%s)"
    EVENT_GUILD_REMOVED = "Removed from guild %s (%s)"
    REQUEST_CHANNEL_QUERY = "Request-channel query from %s in guild %s: %s"
    REQUEST_CHANNEL_REJECTED = "Request-channel query rejected in guild %s: %s"
    VIEW_INTERACTION_ERROR = "Error in view item %s"
    VIEW_EXPIRE_FAILED = "Could not mark view message %s as expired: %s"


class DiscordUIMessages:
    """User-facing strings shown in Discord replies, embeds, and buttons."""

    # Guard / state replies
    STATE_SERVER_ONLY = "This command can only be used in a server."
    STATE_VERIFY_VOICE_FAILED = "Could not verify your voice state."
    STATE_MUST_BE_IN_VOICE = "You must be in the same voice channel as the bot."
    STATE_ADMIN_REQUIRED = "You need the Manage Server permission to change player settings."

    # Error formatting
    ERROR_PREFIX = "❌ {message}"
    ERROR_GENERIC = "❌ Something went wrong while handling that command."

    # Playback replies
    PLAY_STARTED = "🎶 Now playing **{title}**"
    PLAY_QUEUED = "➕ Queued **{title}** (position {position})"
    PLAY_BATCH_STARTED = "🎶 Now playing **{title}** and queued {count} more"
    PLAY_BATCH_QUEUED = "📃 Queued {count} tracks"
    PLAY_SKIPPED_SUFFIX = " ({count} skipped: queue full or duplicate)"
    SEARCH_RESULTS = "🔎 Pick a result for **{query}**"
    SEARCH_EXPIRED = "⌛ This search has expired. Run /search again."
    SEARCH_URL_REJECTED = "Search takes words, not links. Use /play for URLs."
    SKIP_DONE = "⏭️ Skipped **{title}**"
    SKIP_VOTE_RECORDED = "🗳️ Skip vote recorded ({votes}/{needed})"
    SKIP_ALREADY_VOTED = "You already voted to skip this track ({votes}/{needed})."
    REWIND_DONE = "⏮️ Back to **{title}**"
    PAUSED = "⏸️ Paused"
    RESUMED = "▶️ Resumed"
    VOLUME_SET = "🔊 Volume set to **{volume}%**"
    FILTER_APPLIED = "🎛️ Filter **{name}** applied"
    FILTERS_CLEARED = "🎛️ Filters cleared"
    LOOP_ON = "🔂 Loop enabled"
    LOOP_OFF = "🔂 Loop disabled"
    AUTOPLAY_ON = "♾️ Autoplay enabled"
    AUTOPLAY_OFF = "♾️ Autoplay disabled"
    QUEUE_CLEARED = "🗑️ Removed {count} track(s) from the queue"
    DISCONNECTED = "👋 Left <#{channel_id}>"
    MOVED = "➡️ Moved to <#{channel_id}>"

    # Favorites
    FAVORITE_ADDED = "⭐ Saved **{title}** to your favorites"
    FAVORITE_REMOVED = "🗑️ Removed **{title}** from your favorites"
    FAVORITE_NOT_FOUND = "That track is not in your favorites."
    FAVORITES_HEADER = "⭐ **Your favorites** ({count})"

    # Notices pushed to the text channel
    NOTICE_TRACK_EXCEPTION = "⚠️ Playback of **{title}** failed: {error}. Leaving the voice channel."
    NOTICE_DISCONNECTED = "🔌 I was disconnected from the voice channel. Use /play to start again."

    # Status message
    STATUS_TITLE_PLAYING = "Now Playing"
    STATUS_TITLE_PAUSED = "Paused"
    STATUS_TITLE_IDLE = "Nothing playing"
    STATUS_IDLE_DESCRIPTION = "The queue is finished. Use /play to add more music."
    STATUS_NO_FILTER = "None"
    STATUS_VOTES = "{votes}/{needed}"

    # Queue view
    QUEUE_TITLE = "Queue for {guild}"
    QUEUE_EMPTY = "The queue is empty."
    QUEUE_MORE = "…and {count} more"
    QUEUE_FOOTER = "{count} track(s) • total {duration} • {history} played"

    # Action log lines
    ACTION_STARTED = "▶️ {user} played **{title}**"
    ACTION_QUEUED = "➕ {user} queued {count} track(s)"
    ACTION_SKIPPED = "⏭️ {user} skipped"
    ACTION_REWOUND = "⏮️ {user} went back"
    ACTION_PAUSED = "⏸️ {user} paused"
    ACTION_RESUMED = "▶️ {user} resumed"
    ACTION_VOLUME = "🔊 {user} set volume to {volume}%"
    ACTION_FILTER = "🎛️ {user} applied {name}"
    ACTION_FILTERS_CLEARED = "🎛️ {user} cleared filters"
    ACTION_LOOP = "🔂 {user} turned loop {state}"
    ACTION_AUTOPLAY = "♾️ {user} turned autoplay {state}"
    ACTION_QUEUE_CLEARED = "🗑️ {user} cleared the queue"
    ACTION_MOVED = "➡️ {user} moved the player"
    ACTION_AUTOPLAYED = "♾️ Autoplay picked **{title}**"

    # Guild config
    DJ_ONLY_ON = "🎧 DJ-only mode enabled"
    DJ_ONLY_OFF = "🎧 DJ-only mode disabled"
    DJ_ROLE_ADDED = "🎧 Added {role} as a DJ role"
    DJ_ROLE_REMOVED = "🎧 Removed {role} from the DJ roles"
    DJ_ROLE_LIMIT = "You can have at most {limit} DJ roles."
    DJ_ROLE_ALREADY = "{role} is already a DJ role."
    DJ_ROLE_MISSING = "{role} is not a DJ role."
    REQUEST_CHANNEL_SET = "📨 Song requests will be read from <#{channel_id}>"
    REQUEST_CHANNEL_CLEARED = "📨 Request channel cleared"
    CHANNEL_ALLOWED = "✅ Music commands allowed in <#{channel_id}>"
    CHANNEL_DISALLOWED = "🚫 Music commands no longer restricted to <#{channel_id}>"
    DEFAULT_VOLUME_SET = "🔊 Default volume set to **{volume}%**"
    PLAYLISTS_ALLOWED = "📃 Playlists are now allowed"
    PLAYLISTS_BLOCKED = "📃 Playlists are now blocked; only the first track is used"
    CONFIG_SUMMARY = (
        "**DJ-only:** {dj_only}\n**DJ roles:** {dj_roles}\n**Allowed channels:** {channels}\n"
        "**Default volume:** {volume}%\n**Request channel:** {request_channel}\n"
        "**Playlists:** {playlists}"
    )

    # Buttons
    BUTTON_PREVIOUS = "⏮️"
    BUTTON_PAUSE = "⏸️"
    BUTTON_RESUME = "▶️"
    BUTTON_STOP = "⏹️"
    BUTTON_NEXT = "⏭️"
    BUTTON_VOLUME_DOWN = "🔉"
    BUTTON_VOLUME_UP = "🔊"
    BUTTON_LOOP = "🔂"
    BUTTON_AUTOPLAY = "♾️"
    FILTER_PLACEHOLDER = "🎛️ Audio filter"
    SEARCH_PLACEHOLDER = "🔎 Choose a track"
