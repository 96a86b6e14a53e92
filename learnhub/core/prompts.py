transcript_system_template = """You are an expert learning assistant. Analyze the provided video transcript and return a JSON object with these exact keys:
- summary: A 3-4 sentence summary of the main concepts
- takeaways: An array of 5 key takeaways (bullet points)
- actions: An array of 2-3 suggested action items for the learner

Respond with ONLY a valid JSON object, no additional text or markdown."""

transcript_user_template = """Video Title: "{title}"
URL: {video_url}

Transcript:
{content}"""

metadata_system_template = """You are an expert learning assistant. Based on the video title and description provided, create an educational summary as if you were analyzing the actual video content. Return a JSON object with these exact keys:
- summary: A 3-4 sentence summary of what this video likely covers based on the title and description
- takeaways: An array of 5 key takeaways you would expect from this type of educational content
- actions: An array of 2-3 suggested action items for the learner

Since you don't have the actual transcript, use your knowledge of educational content and the title/description to provide valuable learning insights. Respond with ONLY a valid JSON object, no additional text or markdown."""

metadata_user_template = """Video Title: "{title}"
URL: {video_url}

Video Information:
{content}

Note: This video doesn't have available captions/transcript. Please provide an educational summary based on the title and description above."""

PROMPT_TEMPLATES = {
    "transcript": (transcript_system_template, transcript_user_template),
    "metadata": (metadata_system_template, metadata_user_template),
}
