from mcp.server.fastmcp import FastMCP

# All tools we want to expose via the MCP server
from longorwide.infrastructure.resources import get_all_resources_tools

from longorwide.tools.core import get_all_dataset_tools
from longorwide.tools.transform import get_all_reshape_tools, get_all_converter_tools
from longorwide.tools.survey import get_all_survey_tools
from longorwide.tools.stats import get_all_stats_tools

# create an MCP server
mcp = FastMCP("longorwide")

# Add project manifest and resource tools
for tool_func in get_all_resources_tools():
    mcp.add_tool(tool_func)

# Add dataset management tools
for tool_func in get_all_dataset_tools():
    mcp.add_tool(tool_func)

# Add wide/long reshape tools
for tool_func in get_all_reshape_tools():
    mcp.add_tool(tool_func)

# Add converter (comma-separated column lists plus reproducible code)
for tool_func in get_all_converter_tools():
    mcp.add_tool(tool_func)

# Add survey cleaning and scoring tools
for tool_func in get_all_survey_tools():
    mcp.add_tool(tool_func)

# Add statistics tools
for tool_func in get_all_stats_tools():
    mcp.add_tool(tool_func)


if __name__ == "__main__":
    mcp.run()
