"""Style and background preset catalogues offered by the editor panels."""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class Preset:
    name: str
    prompt: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


STYLE_PRESETS: tuple[Preset, ...] = (
    Preset(
        "Vintage Film",
        "Apply a vintage film look to the image, characterized by faded colors, a slight yellow tint, "
        "increased grain, and soft contrast. The blacks should be slightly lifted, and there should be "
        "a subtle vignette effect around the edges.",
    ),
    Preset(
        "Neon Noir",
        "Transform the image into a neon noir style. Dramatically increase contrast, crush the blacks, "
        "and introduce vibrant, glowing neon colors like electric blue, hot pink, and deep purple into "
        "the highlights and midtones. The overall mood should be dark, gritty, and futuristic.",
    ),
    Preset(
        "Golden Hour",
        "Bathe the image in a warm, golden hour light. Enhance the orange and yellow tones, soften the "
        "shadows, and add a gentle, hazy glow to the highlights to simulate the look of late afternoon sun.",
    ),
    Preset(
        "Monochrome",
        "Convert the image to a high-impact, dramatic black and white. Push the contrast to its limits, "
        "creating deep, inky blacks and bright, clean whites. Emphasize textures and forms for a powerful, "
        "moody, and timeless effect.",
    ),
    Preset(
        "Dreamy Pastel",
        "Give the image a soft, dreamy aesthetic using a pastel color palette. Desaturate the original "
        "colors and shift them towards soft pinks, baby blues, and mint greens. Apply a gentle soft-focus "
        "or bloom effect to enhance the ethereal quality.",
    ),
    Preset(
        "Cyberpunk",
        "Apply a cyberpunk aesthetic. Add glowing neon signs, rainy reflections on surfaces, and a cool, "
        "blue-cyan color grade. Introduce elements of futuristic technology and a high-tech, dystopian "
        "atmosphere.",
    ),
)

BACKGROUND_PRESETS: tuple[Preset, ...] = (
    Preset("Sunset", "a beautiful sunset gradient from orange to deep purple"),
    Preset("Oceanic", "a deep ocean gradient from dark blue to turquoise"),
    Preset("Forest", "a lush forest gradient from dark green to a light, misty green"),
    Preset("Synthwave", "an 80s synthwave gradient from neon pink to electric blue"),
    Preset("Pastel", "a soft, dreamy pastel gradient from light pink to baby blue"),
    Preset("Galaxy", "a dark galaxy gradient from deep space black to cosmic purple"),
)


def _lookup(presets: tuple[Preset, ...], name: str, kind: str) -> Preset:
    wanted = name.strip().lower()
    for preset in presets:
        if preset.name.lower() == wanted:
            return preset
    raise KeyError(f"Unknown {kind} preset {name!r}")


def get_style_preset(name: str) -> Preset:
    return _lookup(STYLE_PRESETS, name, "style")


def get_background_preset(name: str) -> Preset:
    return _lookup(BACKGROUND_PRESETS, name, "background")
