"""
Curated country presets for Radio Atlas

Static reference data:
- COUNTRY_PRESETS: one entry per supported country, with the directory's own
  country name and the flagship brands in priority order
- REGIONAL_SEARCH_TERMS: extra search terms for countries where bulk country
  queries miss well-known local stations

Edit this table by hand; nothing here is derived at runtime.
"""

from radio_atlas.models import CountryPreset


def _preset(preset_id, display_name, api_name, brands):
    return CountryPreset(
        id=preset_id,
        display_name=display_name,
        api_name=api_name,
        top_brands=tuple(brands),
    )


COUNTRY_PRESETS = [
    _preset('uk', 'United Kingdom', 'United Kingdom', [
        'BBC Radio 1', 'BBC Radio 2', 'BBC Radio 4', 'BBC 6 Music', 'Capital',
        'Virgin Radio UK', 'Heart', 'Classic FM', 'LBC', 'talkSPORT']),
    _preset('us', 'United States', 'United States', [
        'NPR', 'KIIS', 'Z100', 'KEXP', 'Hot 97', 'iHeart', '1010 WINS', 'WNYC',
        'KROQ', 'SiriusXM']),
    _preset('ca', 'Canada', 'Canada', [
        'CBC Radio One', 'CBC Music', 'Virgin Radio', 'CHUM', 'CFOX', 'CHFI',
        'Boom', '98.1 CHFI']),
    _preset('au', 'Australia', 'Australia', [
        'triple j', 'ABC Radio', 'Nova', 'KIIS', '2GB', '3AW', 'Smooth FM',
        'Gold 104.3']),
    _preset('nz', 'New Zealand', 'New Zealand', [
        'ZM', 'The Edge', 'Newstalk ZB', 'The Rock', 'More FM', 'RNZ National']),
    _preset('ie', 'Ireland', 'Ireland', [
        'RTÉ Radio 1', 'RTÉ 2FM', 'Today FM', 'Newstalk', 'Spin', 'Classic Hits']),
    _preset('de', 'Germany', 'Germany', [
        '1LIVE', 'WDR', 'NDR 2', 'Antenne Bayern', 'Bayern 3', 'SWR3',
        'Radio Hamburg', 'Deutschlandfunk']),
    _preset('fr', 'France', 'France', [
        'France Inter', 'RTL', 'NRJ', 'Europe 1', 'RMC', 'Skyrock', 'France Info',
        'Nostalgie']),
    _preset('es', 'Spain', 'Spain', [
        'Cadena SER', 'COPE', 'Los 40', 'Onda Cero', 'RNE', 'Kiss FM', 'Europa FM']),
    _preset('it', 'Italy', 'Italy', [
        'RTL 102.5', 'Radio Deejay', 'RDS', 'Radio Italia', 'Radio 105',
        'Virgin Radio Italia', 'RAI Radio 1']),
    _preset('nl', 'Netherlands', 'Netherlands', [
        'NPO Radio 1', 'NPO Radio 2', 'Radio 538', 'Sky Radio', 'Qmusic', '3FM']),
    _preset('be', 'Belgium', 'Belgium', [
        'Radio 2', 'Qmusic', 'Studio Brussel', 'MNM', 'Bel RTL', 'Nostalgie']),
    _preset('se', 'Sweden', 'Sweden', [
        'Sveriges Radio P1', 'P3', 'Mix Megapol', 'RIX FM', 'NRJ Sweden']),
    _preset('no', 'Norway', 'Norway', [
        'NRK P1', 'NRK P3', 'P4', 'Radio Norge', 'NRJ Norway']),
    _preset('dk', 'Denmark', 'Denmark', [
        'DR P1', 'DR P3', 'NOVA', 'The Voice', 'Radio4']),
    _preset('fi', 'Finland', 'Finland', [
        'Yle Radio Suomi', 'YleX', 'Radio Nova', 'NRJ Finland', 'SuomiPop']),
    _preset('pl', 'Poland', 'Poland', [
        'RMF FM', 'Radio ZET', 'Polskie Radio', 'Eska', 'TOK FM']),
    _preset('pt', 'Portugal', 'Portugal', [
        'RFM', 'Rádio Comercial', 'Antena 1', 'TSF', 'M80']),
    _preset('ch', 'Switzerland', 'Switzerland', [
        'SRF 1', 'SRF 3', 'Radio 24', 'Radio Energy', 'Couleur 3']),
    _preset('at', 'Austria', 'Austria', [
        'Hitradio Ö3', 'FM4', 'Kronehit', 'Radio Wien', 'Antenne Steiermark']),
    _preset('cz', 'Czechia', 'Czech Republic', [
        'Radiožurnál', 'Evropa 2', 'Frekvence 1', 'ČRo Plus', 'Impuls']),
    _preset('jp', 'Japan', 'Japan', [
        'NHK Radio 1', 'J-WAVE', 'TOKYO FM', 'TBS Radio', 'Nippon Broadcasting']),
    _preset('kr', 'South Korea', 'Korea, Republic of', [
        'KBS', 'SBS Power FM', 'MBC FM4U', 'Arirang Radio']),
    _preset('in', 'India', 'India', [
        'AIR FM Gold', 'Radio Mirchi', 'Red FM', 'Big FM', 'Radio City']),
    _preset('sg', 'Singapore', 'Singapore', [
        'CNA938', 'Class 95', '987', 'Kiss92', 'Gold 905']),
    _preset('my', 'Malaysia', 'Malaysia', [
        'HITZ', 'ERA', 'Lite', 'MIX', 'Sinar']),
    _preset('za', 'South Africa', 'South Africa', [
        'Metro FM', '5FM', '947', 'Kaya 959', '702']),
    _preset('br', 'Brazil', 'Brazil', [
        'Jovem Pan', 'CBN', 'BandNews FM', 'Antena 1', 'Transamérica']),
    _preset('mx', 'Mexico', 'Mexico', [
        'Los 40', 'W Radio', 'Exa FM', 'Radio Fórmula', 'Imagen Radio']),
    _preset('ar', 'Argentina', 'Argentina', [
        'Radio Mitre', 'La 100', 'Cadena 3', 'Continental', 'Metro']),
]

REGIONAL_SEARCH_TERMS = {
    'uk': [
        'BBC Local Radio', 'Heart UK', 'Virgin Radio UK', 'Capital UK',
        'Absolute Radio', 'Kiss UK', 'Smooth Radio', 'Greatest Hits Radio',
        'BBC Radio Stoke', 'Signal 1', 'LBC', 'talkSPORT',
    ],
    'us': ['iHeartRadio', 'NPR', 'Public Radio', 'Classic Rock', 'Top 40', 'Hip Hop'],
    'ca': ['CBC', 'Virgin Radio Canada', 'CHUM', 'Toronto Radio', 'Vancouver Radio', 'Montreal Radio'],
    'au': ['ABC Radio', 'triple j', 'Nova', 'Sydney Radio', 'Melbourne Radio', 'Brisbane Radio'],
    'nz': ['Newstalk ZB', 'ZM', 'The Edge', 'Auckland Radio', 'Wellington Radio'],
}

# Countries without curated terms fall back to this many top brands
REGIONAL_FALLBACK_BRANDS = 6


def get_preset(preset_id):
    """Look up a preset by id (case-insensitive)

    Args:
        preset_id: Preset identifier such as 'uk'

    Returns:
        CountryPreset or None if unknown
    """
    if not preset_id:
        return None

    wanted = preset_id.lower()
    for preset in COUNTRY_PRESETS:
        if preset.id == wanted:
            return preset
    return None


def regional_search_terms(preset):
    """Get regional discovery search terms for a preset

    Args:
        preset: CountryPreset

    Returns:
        List of search terms (curated, or the first few top brands)
    """
    terms = REGIONAL_SEARCH_TERMS.get(preset.id)
    if terms is not None:
        return list(terms)
    return list(preset.top_brands[:REGIONAL_FALLBACK_BRANDS])
