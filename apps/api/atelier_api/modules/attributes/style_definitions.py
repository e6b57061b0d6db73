from __future__ import annotations

from .schema import AttributeCategory, AttributeProperty, AttributeSchema, options

core_style_category = AttributeCategory(
    key="core_style",
    label="Core Style",
    order=1,
    description="High-level style identity that describes what kind of visual world this style belongs to.",
    properties=(
        AttributeProperty(
            key="render_domain",
            label="Render domain",
            type="enum",
            description="Overall rendering family for this style (e.g., comic, anime, painterly, photorealistic).",
            options=options(
                ("comic_illustration", "Comic Illustration"),
                ("manga_anime", "Manga / Anime"),
                ("cartoon", "Cartoon"),
                ("concept_art", "Concept Art"),
                ("painterly", "Painterly Illustration"),
                ("semi_realistic", "Semi-Realistic Illustration"),
                ("photorealistic", "Photorealistic"),
                ("3d_render", "3D Render"),
                ("pixel_art", "Pixel Art"),
            ),
            allow_custom=True,
        ),
        AttributeProperty(
            key="genre",
            label="Genre / subject focus",
            type="tags",
            description="Broad genre cues this style is best suited for (e.g., fantasy, sci-fi, slice of life).",
            options=options(
                ("fantasy", "Fantasy"),
                ("sci_fi", "Sci-Fi"),
                ("urban", "Urban / Street"),
                ("slice_of_life", "Slice of Life"),
                ("romance", "Romance"),
                ("horror", "Horror"),
                ("noir", "Noir"),
                ("historical", "Historical"),
            ),
            allow_custom=True,
        ),
        AttributeProperty(
            key="influences",
            label="Visual influences",
            type="tags",
            description="Optional shorthand for influences or reference traditions.",
            allow_custom=True,
        ),
    ),
)

line_and_detail_category = AttributeCategory(
    key="line_and_detail",
    label="Line & Detail",
    order=2,
    description="Linework weight and how much surface detail the style carries.",
    properties=(
        AttributeProperty(
            key="line_weight",
            label="Line weight",
            type="enum",
            options=options(
                ("no_lines", "No Outlines"),
                ("thin", "Thin, Delicate Lines"),
                ("medium", "Medium Lines"),
                ("bold", "Bold, Heavy Lines"),
                ("variable", "Variable-Weight Ink"),
            ),
            allow_custom=True,
        ),
        AttributeProperty(
            key="detail_level",
            label="Detail level",
            type="enum",
            options=options(
                ("minimal", "Minimal / Graphic"),
                ("moderate", "Moderate Detail"),
                ("high", "Highly Detailed"),
            ),
        ),
        AttributeProperty(
            key="texture",
            label="Texture",
            type="tags",
            options=options(
                ("clean", "Clean / Flat"),
                ("grainy", "Film Grain"),
                ("paper", "Paper Texture"),
                ("halftone", "Halftone Dots"),
                ("brushy", "Visible Brushstrokes"),
            ),
            allow_custom=True,
        ),
    ),
)

color_and_lighting_category = AttributeCategory(
    key="color_and_lighting",
    label="Color & Lighting",
    order=3,
    description="Color palette, saturation, contrast, and lighting character for this style.",
    properties=(
        AttributeProperty(
            key="color_palette",
            label="Color palette",
            type="tags",
            options=options(
                ("bold_colors", "Bold Colors"),
                ("limited_palette", "Limited Palette"),
                ("pastel", "Pastel Palette"),
                ("high_contrast", "High Contrast"),
                ("muted", "Muted / Desaturated"),
            ),
            allow_custom=True,
        ),
        AttributeProperty(
            key="saturation",
            label="Saturation",
            type="enum",
            options=options(
                ("low", "Low Saturation"),
                ("medium", "Medium Saturation"),
                ("high", "High Saturation"),
            ),
            allow_custom=True,
        ),
        AttributeProperty(
            key="lighting_style",
            label="Lighting style",
            type="tags",
            options=options(
                ("soft_light", "Soft, Even Light"),
                ("dramatic_light", "Dramatic / High Contrast Light"),
                ("rim_light", "Rim Lighting"),
                ("studio_light", "Studio Lighting"),
                ("ambient_light", "Ambient / Environmental Light"),
            ),
            allow_custom=True,
        ),
    ),
)

rendering_technique_category = AttributeCategory(
    key="rendering_technique",
    label="Rendering Technique",
    order=4,
    properties=(
        AttributeProperty(
            key="shading",
            label="Shading",
            type="enum",
            options=options(
                ("flat", "Flat Color"),
                ("cel", "Cel Shading"),
                ("soft", "Soft Shading"),
                ("painterly", "Painterly Blending"),
                ("realistic", "Realistic Shading"),
            ),
            allow_custom=True,
        ),
        AttributeProperty(
            key="medium",
            label="Medium",
            type="tags",
            options=options(
                ("digital", "Digital Painting"),
                ("watercolor", "Watercolor"),
                ("ink", "Ink"),
                ("oil", "Oil Paint"),
                ("gouache", "Gouache"),
                ("pencil", "Pencil"),
            ),
            allow_custom=True,
        ),
    ),
)

composition_and_camera_category = AttributeCategory(
    key="composition_and_camera",
    label="Composition & Camera",
    order=5,
    properties=(
        AttributeProperty(
            key="shot_type",
            label="Shot type",
            type="enum",
            options=options(
                ("close_up", "Close-Up"),
                ("medium", "Medium Shot"),
                ("full_body", "Full Body"),
                ("wide", "Wide Shot"),
            ),
            allow_custom=True,
        ),
        AttributeProperty(
            key="camera_angle",
            label="Camera angle",
            type="enum",
            options=options(
                ("eye_level", "Eye Level"),
                ("low_angle", "Low Angle"),
                ("high_angle", "High Angle"),
                ("dutch", "Dutch Angle"),
                ("overhead", "Overhead"),
            ),
            allow_custom=True,
        ),
        AttributeProperty(
            key="lens",
            label="Lens",
            type="string",
            description="Free-form lens hint (e.g., 35mm, fisheye, telephoto compression).",
        ),
    ),
)

mood_and_atmosphere_category = AttributeCategory(
    key="mood_and_atmosphere",
    label="Mood & Atmosphere",
    order=6,
    properties=(
        AttributeProperty(
            key="mood",
            label="Mood",
            type="tags",
            options=options(
                ("whimsical", "Whimsical"),
                ("gritty", "Gritty"),
                ("serene", "Serene"),
                ("ominous", "Ominous"),
                ("energetic", "Energetic"),
                ("nostalgic", "Nostalgic"),
            ),
            allow_custom=True,
        ),
        AttributeProperty(
            key="atmosphere_effects",
            label="Atmospheric effects",
            type="tags",
            options=options(
                ("fog", "Fog / Haze"),
                ("rain", "Rain"),
                ("particles", "Floating Particles"),
                ("bloom", "Bloom / Glow"),
            ),
            allow_custom=True,
        ),
    ),
)

style_definition_schema = AttributeSchema(
    name="style_definition",
    categories=(
        core_style_category,
        line_and_detail_category,
        color_and_lighting_category,
        rendering_technique_category,
        composition_and_camera_category,
        mood_and_atmosphere_category,
    ),
)
