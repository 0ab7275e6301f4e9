"""Static mapping from the Places type taxonomy to the app's category vocabulary.

Rule-based, no AI involved, so it always produces an answer.
"""

from typing import Dict, Iterable, Optional

FOOD = "美食"
LODGING = "住宿"
ECO_CULTURE_EDUCATION = "生態文化教育"
TOUR_EXPERIENCE = "遊程體驗"
ENTERTAINMENT = "娛樂設施"
ACTIVITY = "活動"
ATTRACTION = "景點"
SHOPPING = "購物"

EIGHT_CATEGORIES = (
    FOOD,
    LODGING,
    ECO_CULTURE_EDUCATION,
    TOUR_EXPERIENCE,
    ENTERTAINMENT,
    ACTIVITY,
    ATTRACTION,
    SHOPPING,
)

DEFAULT_CATEGORY = ATTRACTION

# type -> (category, subcategory)
_TYPE_TABLE: Dict[str, tuple] = {
    "restaurant": (FOOD, "餐廳"),
    "cafe": (FOOD, "咖啡廳"),
    "coffee_shop": (FOOD, "咖啡廳"),
    "bakery": (FOOD, "烘焙坊"),
    "bar": (FOOD, "酒吧"),
    "food": (FOOD, "美食店"),
    "meal_delivery": (FOOD, "外送餐廳"),
    "meal_takeaway": (FOOD, "外帶餐廳"),
    "night_club": (FOOD, "夜店"),
    "liquor_store": (FOOD, "酒類專賣"),
    "lodging": (LODGING, "旅館"),
    "hotel": (LODGING, "飯店"),
    "motel": (LODGING, "汽車旅館"),
    "resort_hotel": (LODGING, "度假飯店"),
    "bed_and_breakfast": (LODGING, "民宿"),
    "campground": (LODGING, "露營區"),
    "rv_park": (LODGING, "露營車營地"),
    "hostel": (LODGING, "青年旅館"),
    "guest_house": (LODGING, "招待所"),
    "extended_stay_hotel": (LODGING, "長住飯店"),
    "farm_stay": (LODGING, "農場住宿"),
    "museum": (ECO_CULTURE_EDUCATION, "博物館"),
    "art_gallery": (ECO_CULTURE_EDUCATION, "藝廊"),
    "library": (ECO_CULTURE_EDUCATION, "圖書館"),
    "university": (ECO_CULTURE_EDUCATION, "大學"),
    "school": (ECO_CULTURE_EDUCATION, "學校"),
    "aquarium": (ECO_CULTURE_EDUCATION, "水族館"),
    "zoo": (ECO_CULTURE_EDUCATION, "動物園"),
    "botanical_garden": (ECO_CULTURE_EDUCATION, "植物園"),
    "planetarium": (ECO_CULTURE_EDUCATION, "天文館"),
    "science_museum": (ECO_CULTURE_EDUCATION, "科學博物館"),
    "cultural_center": (ECO_CULTURE_EDUCATION, "文化中心"),
    "historical_place": (ECO_CULTURE_EDUCATION, "歷史遺址"),
    "historical_landmark": (ECO_CULTURE_EDUCATION, "歷史地標"),
    "heritage_museum": (ECO_CULTURE_EDUCATION, "文物館"),
    "travel_agency": (TOUR_EXPERIENCE, "旅行社"),
    "tourist_attraction": (TOUR_EXPERIENCE, "觀光景點"),
    "tour_operator": (TOUR_EXPERIENCE, "遊程業者"),
    "visitor_center": (TOUR_EXPERIENCE, "遊客中心"),
    "farm": (TOUR_EXPERIENCE, "農場"),
    "winery": (TOUR_EXPERIENCE, "酒莊"),
    "distillery": (TOUR_EXPERIENCE, "蒸餾酒廠"),
    "brewery": (TOUR_EXPERIENCE, "啤酒廠"),
    "amusement_park": (ENTERTAINMENT, "遊樂園"),
    "bowling_alley": (ENTERTAINMENT, "保齡球館"),
    "movie_theater": (ENTERTAINMENT, "電影院"),
    "casino": (ENTERTAINMENT, "賭場"),
    "amusement_center": (ENTERTAINMENT, "遊樂中心"),
    "video_arcade": (ENTERTAINMENT, "電玩場"),
    "karaoke": (ENTERTAINMENT, "KTV"),
    "escape_room": (ENTERTAINMENT, "密室逃脫"),
    "indoor_playground": (ENTERTAINMENT, "室內遊樂場"),
    "water_park": (ENTERTAINMENT, "水上樂園"),
    "theme_park": (ENTERTAINMENT, "主題樂園"),
    "laser_tag": (ENTERTAINMENT, "雷射槍戰"),
    "go_kart_track": (ENTERTAINMENT, "卡丁車場"),
    "miniature_golf": (ENTERTAINMENT, "迷你高爾夫"),
    "spa": (ACTIVITY, "SPA"),
    "gym": (ACTIVITY, "健身房"),
    "fitness_center": (ACTIVITY, "健身中心"),
    "yoga_studio": (ACTIVITY, "瑜伽教室"),
    "golf_course": (ACTIVITY, "高爾夫球場"),
    "stadium": (ACTIVITY, "體育場"),
    "sports_club": (ACTIVITY, "運動俱樂部"),
    "swimming_pool": (ACTIVITY, "游泳池"),
    "ski_resort": (ACTIVITY, "滑雪場"),
    "hiking_area": (ACTIVITY, "健行步道"),
    "bicycle_store": (ACTIVITY, "自行車店"),
    "bicycle_rental": (ACTIVITY, "自行車租賃"),
    "surfing_area": (ACTIVITY, "衝浪區"),
    "diving_center": (ACTIVITY, "潛水中心"),
    "sports_complex": (ACTIVITY, "運動中心"),
    "tennis_court": (ACTIVITY, "網球場"),
    "horse_riding": (ACTIVITY, "馬術"),
    "rock_climbing": (ACTIVITY, "攀岩"),
    "rafting": (ACTIVITY, "泛舟"),
    "park": (ATTRACTION, "公園"),
    "natural_feature": (ATTRACTION, "自然景觀"),
    "point_of_interest": (ATTRACTION, "景點"),
    "landmark": (ATTRACTION, "地標"),
    "monument": (ATTRACTION, "紀念碑"),
    "observation_deck": (ATTRACTION, "觀景台"),
    "scenic_spot": (ATTRACTION, "風景區"),
    "beach": (ATTRACTION, "海灘"),
    "mountain": (ATTRACTION, "山岳"),
    "waterfall": (ATTRACTION, "瀑布"),
    "hot_spring": (ATTRACTION, "溫泉"),
    "national_park": (ATTRACTION, "國家公園"),
    "state_park": (ATTRACTION, "州立公園"),
    "garden": (ATTRACTION, "花園"),
    "plaza": (ATTRACTION, "廣場"),
    "pier": (ATTRACTION, "碼頭"),
    "marina": (ATTRACTION, "遊艇碼頭"),
    "lighthouse": (ATTRACTION, "燈塔"),
    "viewpoint": (ATTRACTION, "觀景點"),
    "shopping_mall": (SHOPPING, "購物中心"),
    "store": (SHOPPING, "商店"),
    "department_store": (SHOPPING, "百貨公司"),
    "clothing_store": (SHOPPING, "服飾店"),
    "shoe_store": (SHOPPING, "鞋店"),
    "jewelry_store": (SHOPPING, "珠寶店"),
    "electronics_store": (SHOPPING, "3C 賣場"),
    "furniture_store": (SHOPPING, "家具店"),
    "home_goods_store": (SHOPPING, "家居用品店"),
    "book_store": (SHOPPING, "書店"),
    "gift_shop": (SHOPPING, "禮品店"),
    "florist": (SHOPPING, "花店"),
    "pet_store": (SHOPPING, "寵物店"),
    "market": (SHOPPING, "市場"),
    "flea_market": (SHOPPING, "跳蚤市場"),
    "outlet_store": (SHOPPING, "暢貨中心"),
    "souvenir_shop": (SHOPPING, "紀念品店"),
    "souvenir_store": (SHOPPING, "紀念品店"),
    "antique_store": (SHOPPING, "古董店"),
    "toy_store": (SHOPPING, "玩具店"),
    "cosmetics_store": (SHOPPING, "美妝店"),
}

TYPE_TO_CATEGORY: Dict[str, str] = {key: value[0] for key, value in _TYPE_TABLE.items()}
TYPE_TO_SUBCATEGORY: Dict[str, str] = {key: value[1] for key, value in _TYPE_TABLE.items()}

CATEGORY_DEFAULT_SUBCATEGORY: Dict[str, str] = {
    FOOD: "餐廳",
    LODGING: "旅館",
    ECO_CULTURE_EDUCATION: "教育場所",
    TOUR_EXPERIENCE: "體驗活動",
    ENTERTAINMENT: "娛樂場所",
    ACTIVITY: "休閒活動",
    ATTRACTION: "觀光景點",
    SHOPPING: "商店",
}

_DESCRIPTION_TEMPLATES: Dict[str, str] = {
    FOOD: "{area}在地人氣{subcategory}「{name}」，提供道地美味，值得一訪。",
    LODGING: "位於{area}的{subcategory}「{name}」，提供舒適住宿體驗。",
    ATTRACTION: "{area}必訪{subcategory}「{name}」，感受在地自然與人文魅力。",
    SHOPPING: "{area}特色{subcategory}「{name}」，挖寶好去處。",
    ENTERTAINMENT: "{area}人氣{subcategory}「{name}」，適合闔家同樂。",
    ACTIVITY: "在{area}的{subcategory}「{name}」，創造難忘回憶。",
    TOUR_EXPERIENCE: "{area}特色{subcategory}「{name}」，深度感受在地文化。",
    ECO_CULTURE_EDUCATION: "{area}{subcategory}「{name}」，寓教於樂的好選擇。",
}


def _first_match(table: Dict[str, str], primary_type: Optional[str], types: Iterable[str]) -> Optional[str]:
    if primary_type and primary_type in table:
        return table[primary_type]
    for type_name in types or ():
        if type_name in table:
            return table[type_name]
    return None


def determine_category(primary_type: Optional[str], types: Iterable[str]) -> str:
    """Primary type first, then the remaining types in order, else the attraction default."""
    return _first_match(TYPE_TO_CATEGORY, primary_type, types) or DEFAULT_CATEGORY


def determine_subcategory(primary_type: Optional[str], types: Iterable[str]) -> str:
    subcategory = _first_match(TYPE_TO_SUBCATEGORY, primary_type, types)
    if subcategory:
        return subcategory
    return CATEGORY_DEFAULT_SUBCATEGORY[determine_category(primary_type, types)]


def fallback_description(name: str, category: str, subcategory: str, area: str) -> str:
    template = _DESCRIPTION_TEMPLATES.get(category)
    if template is None:
        return f"歡迎造訪{area}的{subcategory}「{name}」。"
    return template.format(name=name, subcategory=subcategory, area=area)
