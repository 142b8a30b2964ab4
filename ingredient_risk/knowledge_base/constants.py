from typing import Dict, List, Set

from ingredient_risk.text import normalize_text

# Plain food ingredients treated as healthy when the additive KB has no match.
# Matched on the whole normalized phrase, never as a substring.
SAFE_INGREDIENTS: Dict[str, List[str]] = {
    "Water": [
        "water", "filtered water", "drinking water", "mineral water",
        "水", "飲用水", "純水", "礦泉水",
    ],
    "Sugars": [
        "sugar", "cane sugar", "beet sugar", "brown sugar", "raw sugar", "honey",
        "糖", "砂糖", "白砂糖", "二砂", "蔗糖", "黑糖", "紅糖", "蜂蜜",
    ],
    "Salt": [
        "salt", "sea salt", "table salt",
        "鹽", "食鹽", "海鹽",
    ],
    "Grains": [
        "rice", "brown rice", "rice bran", "wheat flour", "flour", "whole wheat flour",
        "oats", "rolled oats", "barley", "corn", "germ", "wheat germ",
        "米", "白米", "糙米", "米糠", "胚芽", "小麥粉", "麵粉", "全麥麵粉", "燕麥", "大麥", "玉米",
    ],
    "Starches": [
        "corn starch", "cornstarch", "potato starch", "tapioca starch",
        "玉米澱粉", "馬鈴薯澱粉", "樹薯澱粉",
    ],
    "Dairy and Eggs": [
        "milk", "whole milk", "skim milk", "milk powder", "cream", "butter", "egg", "eggs",
        "牛奶", "鮮乳", "奶粉", "全脂奶粉", "鮮奶油", "奶油", "雞蛋", "蛋",
    ],
    "Oils": [
        "vegetable oil", "sunflower oil", "olive oil", "soybean oil", "canola oil",
        "植物油", "大豆油", "葵花油", "橄欖油", "芥花油",
    ],
    "Produce": [
        "garlic", "onion", "tomato", "potato", "carrot", "apple", "lemon juice",
        "大蒜", "洋蔥", "番茄", "馬鈴薯", "紅蘿蔔", "蘋果", "檸檬汁",
    ],
    "Nuts and Legumes": [
        "peanuts", "almonds", "soybeans", "sesame",
        "花生", "杏仁", "黃豆", "大豆", "芝麻",
    ],
    "Seasonings": [
        "yeast", "vinegar", "soy sauce", "pepper", "black pepper", "cinnamon", "spices",
        "cocoa", "cocoa butter", "vanilla extract",
        "酵母", "醋", "醬油", "胡椒", "黑胡椒", "肉桂", "香辛料", "可可粉", "可可脂",
    ],
}

# Flatten for fast lookup
ALL_SAFE_INGREDIENTS: Set[str] = {
    normalize_text(term) for terms in SAFE_INGREDIENTS.values() for term in terms
}

SAFE_INGREDIENT_NOTE: Dict[str, str] = {
    "en": "Common food ingredient",
    "zh": "一般食品原料",
}

# Default entry when neither the KB, the safe-list nor the classifier yields a result
DEFAULT_NOTE: Dict[str, str] = {
    "en": "no data",
    "zh": "無資料",
}
