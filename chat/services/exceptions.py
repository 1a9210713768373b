class ChatContextNotFound(Exception):
    """The assessment or its results do not exist."""


class ConversationNotFound(Exception):
    """A conversation id was supplied that does not belong to this assessment and chat context."""


class ChatAccessDenied(Exception):
    pass


class LLMConfigurationError(Exception):
    pass
