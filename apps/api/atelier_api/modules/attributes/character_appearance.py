from __future__ import annotations

from .schema import AttributeCategory, AttributeProperty, AttributeSchema, options

body_category = AttributeCategory(
    key="body",
    label="Body & Build",
    order=1,
    description="Overall silhouette: build, height and apparent age.",
    properties=(
        AttributeProperty(
            key="build",
            label="Build",
            type="enum",
            options=options(
                ("slim", "Slim"),
                ("athletic", "Athletic"),
                ("average", "Average"),
                ("muscular", "Muscular"),
                ("heavyset", "Heavyset"),
                ("petite", "Petite"),
            ),
            allow_custom=True,
        ),
        AttributeProperty(
            key="height",
            label="Height",
            type="enum",
            options=options(
                ("very_short", "Very Short"),
                ("short", "Short"),
                ("average", "Average Height"),
                ("tall", "Tall"),
                ("very_tall", "Very Tall"),
            ),
        ),
        AttributeProperty(
            key="age_range",
            label="Apparent age",
            type="enum",
            options=options(
                ("child", "Child"),
                ("teen", "Teenager"),
                ("young_adult", "Young Adult"),
                ("adult", "Adult"),
                ("middle_aged", "Middle-Aged"),
                ("elderly", "Elderly"),
            ),
            allow_custom=True,
        ),
    ),
)

face_category = AttributeCategory(
    key="face",
    label="Face",
    order=2,
    properties=(
        AttributeProperty(
            key="face_shape",
            label="Face shape",
            type="enum",
            options=options(
                ("oval", "Oval"),
                ("round", "Round"),
                ("square", "Square"),
                ("heart", "Heart-Shaped"),
                ("long", "Long"),
            ),
            allow_custom=True,
        ),
        AttributeProperty(
            key="skin_tone",
            label="Skin tone",
            type="enum",
            options=options(
                ("fair", "Fair"),
                ("light", "Light"),
                ("medium", "Medium"),
                ("olive", "Olive"),
                ("tan", "Tan"),
                ("brown", "Brown"),
                ("dark", "Dark"),
            ),
            allow_custom=True,
        ),
        AttributeProperty(
            key="eye_color",
            label="Eye color",
            type="enum",
            options=options(
                ("brown", "Brown"),
                ("blue", "Blue"),
                ("green", "Green"),
                ("hazel", "Hazel"),
                ("gray", "Gray"),
                ("amber", "Amber"),
            ),
            allow_custom=True,
        ),
        AttributeProperty(
            key="facial_features",
            label="Facial features",
            type="tags",
            options=options(
                ("freckles", "Freckles"),
                ("dimples", "Dimples"),
                ("beard", "Beard"),
                ("mustache", "Mustache"),
                ("glasses", "Glasses"),
                ("high_cheekbones", "High Cheekbones"),
            ),
            allow_custom=True,
        ),
    ),
)

hair_category = AttributeCategory(
    key="hair",
    label="Hair",
    order=3,
    properties=(
        AttributeProperty(
            key="hair_color",
            label="Hair color",
            type="enum",
            options=options(
                ("black", "Black"),
                ("brown", "Brown"),
                ("blonde", "Blonde"),
                ("red", "Red"),
                ("gray", "Gray"),
                ("white", "White"),
            ),
            allow_custom=True,
        ),
        AttributeProperty(
            key="hair_length",
            label="Hair length",
            type="enum",
            options=options(
                ("bald", "Bald"),
                ("buzzed", "Buzzed"),
                ("short", "Short"),
                ("shoulder", "Shoulder-Length"),
                ("long", "Long"),
            ),
        ),
        AttributeProperty(
            key="hair_style",
            label="Hair style",
            type="tags",
            options=options(
                ("straight", "Straight"),
                ("wavy", "Wavy"),
                ("curly", "Curly"),
                ("braided", "Braided"),
                ("ponytail", "Ponytail"),
                ("undercut", "Undercut"),
            ),
            allow_custom=True,
        ),
    ),
)

distinguishing_category = AttributeCategory(
    key="distinguishing_features",
    label="Distinguishing Features",
    order=4,
    description="Marks and accessories that must stay consistent across images.",
    properties=(
        AttributeProperty(
            key="marks",
            label="Marks",
            type="tags",
            options=options(
                ("tattoos", "Tattoos"),
                ("scars", "Scars"),
                ("piercings", "Piercings"),
                ("birthmark", "Birthmark"),
            ),
            allow_custom=True,
        ),
        AttributeProperty(
            key="accessories",
            label="Accessories",
            type="tags",
            allow_custom=True,
        ),
    ),
)

outfit_category = AttributeCategory(
    key="outfit",
    label="Outfit",
    order=5,
    properties=(
        AttributeProperty(
            key="outfit_style",
            label="Outfit style",
            type="tags",
            options=options(
                ("casual", "Casual"),
                ("formal", "Formal"),
                ("streetwear", "Streetwear"),
                ("uniform", "Uniform"),
                ("armor", "Armor"),
                ("fantasy_robes", "Fantasy Robes"),
            ),
            allow_custom=True,
        ),
        AttributeProperty(
            key="signature_items",
            label="Signature items",
            type="tags",
            allow_custom=True,
        ),
        AttributeProperty(
            key="outfit_colors",
            label="Outfit colors",
            type="string",
        ),
    ),
)

expression_category = AttributeCategory(
    key="expression_and_pose",
    label="Expression & Pose",
    order=6,
    properties=(
        AttributeProperty(
            key="default_expression",
            label="Default expression",
            type="enum",
            options=options(
                ("neutral", "Neutral"),
                ("smiling", "Smiling"),
                ("serious", "Serious"),
                ("smirking", "Smirking"),
                ("melancholic", "Melancholic"),
            ),
            allow_custom=True,
        ),
        AttributeProperty(
            key="posture",
            label="Posture",
            type="enum",
            options=options(
                ("upright", "Upright"),
                ("relaxed", "Relaxed"),
                ("slouched", "Slouched"),
                ("guarded", "Guarded"),
            ),
            allow_custom=True,
        ),
    ),
)

# not visual; kept for writers, left out of image prompts
personality_category = AttributeCategory(
    key="personality",
    label="Personality",
    order=7,
    properties=(
        AttributeProperty(
            key="temperament",
            label="Temperament",
            type="tags",
            options=options(
                ("cheerful", "Cheerful"),
                ("stoic", "Stoic"),
                ("anxious", "Anxious"),
                ("reckless", "Reckless"),
                ("curious", "Curious"),
            ),
            allow_custom=True,
        ),
        AttributeProperty(key="voice", label="Voice", type="string"),
    ),
)

background_category = AttributeCategory(
    key="background",
    label="Background",
    order=8,
    properties=(
        AttributeProperty(key="origin", label="Origin", type="string"),
        AttributeProperty(key="occupation", label="Occupation", type="string"),
    ),
)

character_appearance_schema = AttributeSchema(
    name="character_appearance",
    categories=(
        body_category,
        face_category,
        hair_category,
        distinguishing_category,
        outfit_category,
        expression_category,
        personality_category,
        background_category,
    ),
)

# categories that describe what the camera sees
VISUAL_CATEGORY_KEYS = frozenset(
    {
        "body",
        "face",
        "hair",
        "distinguishing_features",
        "outfit",
        "expression_and_pose",
    }
)
