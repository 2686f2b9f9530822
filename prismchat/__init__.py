"""prismchat - Terminal chat client with streamed, colored replies.

Stream a chat with an OpenAI, Gemini or Anthropic model into the terminal.
Replies are decoded word by word as they arrive: inline ``§COLOR§`` tags
switch the text color and words are wrapped to the terminal width without
being split.

Exports:
    __version__: str - The current version of the prismchat package.

Submodules:
    backends: Provider streaming backends and the backend factory.
    chat: Session state, debug logging and turn execution.
    cli: Command-line interface with entry point and signal handling.
    colors: Color tag table.
    commands: Slash-command dispatch.
    config: Configuration constants and persisted settings.
    conversation: Conversation history and its JSON file format.
    decoder: Streaming decoder (segmenter, tag resolver, printer, driver).
    runner: Interactive chat loop.
    ui: Terminal UI components.
"""

__version__ = "0.1.0"
