"""Prompt and instruction templates for plugin migrations."""

STRATEGY_PROMPT_INTRO = """\
You are migrating an Eliza plugin from version 0.x to 1.x. Analyze the provided codebase \
and generate a SPECIFIC, DETAILED migration strategy.

## Key Migration Requirements:

1. **Import Updates**: All @elizaos imports must use new paths (elizaLogger → logger, etc.)
2. **Type Migrations**: Account → Entity, userId → entityId, room → world
3. **Service Architecture**: Services must extend base Service class with lifecycle methods
4. **Event System**: Implement proper event emission and handling
5. **Memory Operations**: Update to use new API with table names
6. **Model Usage**: Convert generateText to runtime.useModel
7. **Templates**: Migrate from JSON to XML format
8. **Testing**: Create comprehensive unit and integration tests

## Repository Context:

"""

STRATEGY_PROMPT_TASK = """

## Task:

Generate a SPECIFIC migration strategy for THIS plugin. Your response should include:

1. **Exact File Changes**: List each file that needs to be modified with specific changes
2. **Import Mappings**: Exact old import → new import for this codebase
3. **Type Updates**: List every type that needs updating with old → new
4. **Service Migrations**: Identify services and exactly how to migrate them
5. **Memory Operation Updates**: Find all memory operations and show exact changes
6. **Model Usage Updates**: Find all model calls and show exact replacements
7. **Test Files to Create**: List specific test files with what they should test
8. **Package.json Updates**: Exact scripts and dependencies to add/update

Be extremely specific. Use actual file names, function names, and line references from the codebase.
Format your response as a clear, actionable migration plan."""

EMPTY_CONTEXT_NOTE = (
    "(No README, manifest or source files were found in this repository. "
    "Produce the best general plan you can and list what should be inspected manually.)"
)

DEFAULT_BASE_INSTRUCTIONS = """\
# Eliza Plugin Migration Guide: 0.x → 1.x

This file drives an automated migration of this plugin to the Eliza 1.x plugin API.

## General Rules

- Keep the plugin's public behavior unchanged unless the 1.x API forces a change.
- Replace `elizaLogger` with `logger` from `@elizaos/core`.
- Rename `Account` to `Entity`, `userId` to `entityId` and `room` to `world`.
- Services extend the core `Service` class and implement `start`/`stop`.
- Model calls go through `runtime.useModel(ModelType.*, params)`.
- Prompt templates use XML response formats instead of JSON.
- Every action, provider and service gets unit tests; the plugin gets an integration test.
- Format the result with prettier before finishing.
"""

SPECIFIC_STRATEGY_HEADING = "## SPECIFIC MIGRATION STRATEGY FOR THIS PLUGIN"

EXECUTION_INSTRUCTIONS = """\
## MIGRATION EXECUTION INSTRUCTIONS

You are now going to apply the above migration strategy to this codebase. Follow these steps:

1. **Apply All File Changes**: Go through each file listed in the strategy and apply the exact \
changes specified
2. **Create Test Files**: Create all the test files mentioned in the strategy with comprehensive \
test coverage
3. **Update package.json**: Add all scripts and dependencies as specified
4. **Run Tests**: After making changes, run the tests to ensure everything works
5. **Fix Any Issues**: If tests fail, debug and fix the issues
6. **Format Code**: Run prettier to format all code

Work systematically through the strategy. Make all changes, create all tests, and ensure \
everything is working before finishing.

The goal is a fully migrated, tested, and working 1.x plugin.
"""

EXECUTOR_INSTRUCTION = (
    "Please read the CLAUDE.md file in this repository and execute all the migration steps "
    "described there. Apply all changes systematically, create all tests, and ensure "
    "everything works."
)

EXECUTOR_INSTALL_HINT = "npm install -g @anthropic-ai/claude-code"
