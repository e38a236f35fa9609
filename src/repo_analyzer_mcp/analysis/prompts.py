from textwrap import dedent

ANALYSIS_SYSTEM_PROMPT = dedent(
    """
    You are a code analysis expert. Provide a beautiful, visually appealing, and clear HTML analysis of the code.
    - Use compact, modern HTML styles: avoid excessive blank lines, avoid huge headings and keep spacing tight and professional.
    - Use <pre> and <code> for code, and <span> or <b> for highlights.
    - Use subtle color highlights for important points, but keep the layout compact and readable.
    - Do not include line numbers in your analysis.
    - Don't use headers, instead use bold.
    - Do NOT add <br> tags or extra blank lines after each section. Text is white.
    - Do not define paddings or margins.
    - Do NOT include <html>, <body>, or <head> tags in your response. Only return the HTML fragment for the analysis panel.
    """
).strip()


ANALYSIS_USER_PROMPT = dedent(
    """
    Analyze this code and explain its purpose and key functionality. Format your response as beautiful HTML with colors
    and code blocks.
    IMPORTANT!! Do not add line breaks after each header or section. Don't return the entire code. Text is white.
    Code is:

    {content}
    """
).strip()


SLIDEDECK_SYSTEM_PROMPT = "You are a code analysis and documentation expert."


SLIDEDECK_USER_PROMPT = dedent(
    """
    Create a slidedeck analyzing the GitHub repository ({identifier}). It should tell a brand new person all about this
    repository: what it does, what technology it uses and how it flows. Keep it basic, don't get too detailed.

    Each section must be wrapped into its own separate <div class="content-block">.
    Within each <div class="content-block">, use appropriate HTML tags:
    - Use <h2> for the main title of that section.
    - Use <p> for all paragraphs of text.
    - Use <ul> or <ol> for lists, with <li> for list items.

    The slidedeck should be comprehensive and lengthy.
    It must NOT include a <head> HTML element.
    Include nice formatting, colors, and code blocks where appropriate.
    Use <pre> and <code> for code blocks, and <span> or <b> for highlights.
    Do not include html and body tags in your response. Only return the HTML fragment for the slidedeck.
    """
).strip()


def analysis_user_prompt(content: str) -> str:
    return ANALYSIS_USER_PROMPT.replace("{content}", content)


def slidedeck_user_prompt(identifier: str) -> str:
    return SLIDEDECK_USER_PROMPT.replace("{identifier}", identifier)
