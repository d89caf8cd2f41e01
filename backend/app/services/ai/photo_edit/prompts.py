"""Prompt builders for the photo-edit operations."""

from __future__ import annotations

from .contracts import Hotspot, ResolutionSpec

_SKIN_TONE_POLICY = (
    "Safety & Ethics Policy:\n"
    "- You MUST fulfill requests to adjust skin tone, such as 'give me a tan', 'make my skin darker', "
    "or 'make my skin lighter'. These are considered standard photo enhancements.\n"
    "- You MUST REFUSE any request to change a person's fundamental race or ethnicity (e.g., 'make me "
    "look Asian', 'change this person to be Black'). Do not perform these edits. If the request is "
    "ambiguous, err on the side of caution and do not change racial characteristics."
)

_FILTER_POLICY = (
    "Safety & Ethics Policy:\n"
    "- Filters may subtly shift colors, but you MUST ensure they do not alter a person's fundamental "
    "race or ethnicity.\n"
    "- You MUST REFUSE any request that explicitly asks to change a person's race (e.g., 'apply a "
    "filter to make me look Chinese')."
)

DETECTION_PROMPT = (
    "Analyze this image and identify the main objects within it. For each distinct object you find, "
    "provide a concise label and its bounding box coordinates. The coordinates should be in pixels, "
    "with (0,0) being the top-left corner. Return the output as a JSON array."
)


def edit_prompt(user_prompt: str, hotspot: Hotspot) -> str:
    return (
        "You are an expert photo editor AI. Your task is to perform a natural, localized edit on the "
        "provided image based on the user's request.\n"
        f'User Request: "{user_prompt}"\n'
        f"Edit Location: Focus on the area around pixel coordinates (x: {hotspot.x}, y: {hotspot.y}).\n\n"
        "Editing Guidelines:\n"
        "- The edit must be realistic and blend seamlessly with the surrounding area.\n"
        "- The rest of the image (outside the immediate edit area) must remain identical to the original.\n\n"
        f"{_SKIN_TONE_POLICY}\n\n"
        "Output: Return ONLY the final edited image. Do not return text."
    )


def object_edit_prompt(user_prompt: str, label: str, hotspot: Hotspot) -> str:
    # Anchor the request on the detected object so the model edits only that region.
    return edit_prompt(f"For the {label}: {user_prompt}", hotspot)


def filter_prompt(filter_request: str) -> str:
    return (
        "You are an expert photo editor AI. Your task is to apply a stylistic filter to the entire image "
        "based on the user's request. Do not change the composition or content, only apply the style.\n"
        f'Filter Request: "{filter_request}"\n\n'
        f"{_FILTER_POLICY}\n\n"
        "Output: Return ONLY the final filtered image. Do not return text."
    )


def adjustment_prompt(adjustment_request: str) -> str:
    return (
        "You are an expert photo editor AI. Your task is to perform a natural, global adjustment to the "
        "entire image based on the user's request.\n"
        f'User Request: "{adjustment_request}"\n\n'
        "Editing Guidelines:\n"
        "- The adjustment must be applied across the entire image.\n"
        "- The result must be photorealistic.\n\n"
        f"{_SKIN_TONE_POLICY}\n\n"
        "Output: Return ONLY the final adjusted image. Do not return text."
    )


COMPOSITE_PROMPT = (
    "You are an expert photo editor AI. The user has provided two images. The first image contains a "
    "subject, and the second image is a new background.\n"
    "Your task is to:\n"
    "1.  Identify and isolate the main subject from the first image. The subject is likely the most "
    "prominent person, animal, or object.\n"
    "2.  Realistically composite this isolated subject onto the second image (the background).\n"
    "3.  Pay close attention to matching lighting, shadows, color temperature, and perspective to create "
    "a seamless and believable final image. The subject should look like it naturally belongs in the "
    "new environment.\n"
    "4.  If the foreground image contains a person, their identity and features must be preserved exactly.\n\n"
    "Output: Return ONLY the final composited image. Do not return text."
)


def background_prompt(background_description: str) -> str:
    return (
        "You are an expert photo editor AI. Your task is to replace the background of the provided image.\n"
        f'New Background: "{background_description}"\n\n'
        "Editing Guidelines:\n"
        "- Keep the main subject exactly as it is, including its edges, pose, and identity.\n"
        "- Blend the subject naturally into the new background, adjusting only lighting on the edges "
        "where needed.\n\n"
        "Output: Return ONLY the final image with the new background. Do not return text."
    )


def upscale_prompt(spec: ResolutionSpec) -> str:
    return (
        "You are a world-class photo editing AI specializing in image upscaling. Your task is to upscale "
        f"the provided image to {spec.name}. The final image's longest side should be exactly "
        f"{spec.pixels} pixels.\n\n"
        "Upscaling Guidelines:\n"
        "- Enhance fine details, sharpness, and clarity to a photorealistic level suitable for "
        "high-resolution displays.\n"
        "- Maintain the original image's content, composition, and color grading perfectly. Do not add, "
        "remove, or alter any elements.\n"
        "- The final output must be free of digital artifacts, noise, or unnatural textures.\n\n"
        "Output: Return ONLY the final, high-resolution upscaled image. Do not return text."
    )
