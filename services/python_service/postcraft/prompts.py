MAX_ARTICLE_CHARS = 2000

SELF_CHECK_PROMPT = "Say 'AI is working perfectly!'"


def build_design_prompt(article_text: str) -> str:
    """Format the design-extraction instruction for one article.

    The article is clipped to the first 2000 characters and inserted as-is;
    braces or quotes inside it are not escaped.
    """
    article = (article_text or "")[:MAX_ARTICLE_CHARS]
    return f"""
    Create a social media graphic design from this article.

    ARTICLE: {article}

    Return a JSON object with these exact fields:
    1. "title": A catchy, engaging title (5-8 words max)
    2. "quote": A key insight or compelling quote from the article (10-15 words)
    3. "imageDescription": A detailed description for generating a relevant background image
    4. "hashtags": 3 relevant hashtags (start with #)
    5. "colorScheme": A color palette suggestion (e.g., "#4F46E5,#FBBF24,#FFFFFF")

    Format as valid JSON only. No additional text.
    """
